"""X11 wire protocol: framing, message classification and connection setup."""
