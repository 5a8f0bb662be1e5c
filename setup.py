from setuptools import find_packages, setup

setup(
    name="tsprim",
    version="0.1.0",
    description="Numerical time-series primitives: exponentially weighted moving statistics with bias correction",
    packages=find_packages(include=["tsprim", "tsprim.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numba",
        "numpy>=1.22",
        "pandas>=1.5",
        "pydantic>=2",
        "typing-extensions",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
)
