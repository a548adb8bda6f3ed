"""Setup configuration for the jigsaw-assembly package."""

from setuptools import find_packages, setup

setup(
    name="jigsaw-assembly",
    version="0.1.0",
    packages=find_packages(include=["jigsaw_engine", "jigsaw_engine.*", "app", "app.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy>=1.9",
        "fastapi",
        "uvicorn",
        "python-multipart",
        "pillow",
        "pydantic",
        "pydantic-settings",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
            "httpx",
            "black",
            "flake8",
            "mypy",
            "isort",
        ],
    },
)
