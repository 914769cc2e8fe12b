"""Setup file for editable install compatibility."""
from setuptools import setup, find_packages

setup(
    name="minvar-frontier",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.20",
        "pandas>=2.2",
        "scipy>=1.9",
        "matplotlib>=3.4",
        "openpyxl>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mvf-analyze=minvar_frontier.cli.main:main",
        ],
    },
    python_requires=">=3.9",
)
