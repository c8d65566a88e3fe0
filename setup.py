"""
Setup script for the document database workshop.

Allows development installation with `pip install -e .`
Install test dependencies with `pip install -e .[test]`
"""

from pathlib import Path

from setuptools import setup, find_packages

version_ns = {}
exec((Path(__file__).parent / "docdb" / "version.py").read_text(), version_ns)

setup(
    name="docdb-workshop",
    version=version_ns["__version__"],
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    python_requires=">=3.11",
    install_requires=[
        "pymongo>=4.6",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
        "fastapi>=0.110",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "mongomock>=4.1",
            "httpx>=0.27",
        ],
    },
)
