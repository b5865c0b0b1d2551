"""Setup configuration for humanqa."""

from setuptools import setup, find_packages

setup(
    name="humanqa",
    version="1.0.0",
    description="Submit human-performed QA tests and wait for the verdict",
    author="Your Name",
    packages=find_packages(include=["humanqa", "humanqa.*"]),
    install_requires=[
        "click>=8.1.7",
        "httpx>=0.27",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "humanqa=humanqa.cli:cli",
        ],
    },
    python_requires=">=3.9",
)
