import setuptools

setuptools.setup(
    name="x11parity",
    version="0.1.0",
    description="Simulated X11 client sessions and a semantic equivalence oracle for validating canvas-based X servers.",
    packages=setuptools.find_packages(include=["x11parity", "x11parity.*"]),
    install_requires=[
        "numpy",
        "msgpack",
    ],
    extras_require={
        "server": [
            "flask",
            "flask-socketio",
            "pandas",
            "flatten_dict",
        ],
        "test": [
            "pytest>=8.0",
            "playwright>=1.49",
            "pytest-playwright>=0.6",
            "pytest-timeout>=2.3",
            "flask",
            "flask-socketio",
            "pandas",
            "flatten_dict",
        ],
    },
)
