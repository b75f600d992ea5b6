"""Semantic equivalence oracle between reference and observed traces."""
