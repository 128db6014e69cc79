#!/usr/bin/env python
"""Setup configuration for PHI Guard."""

from setuptools import find_packages, setup

setup(
    name="phiguard",
    version="1.0.0",
    description="HIPAA data-protection layer: PHI encryption, access decisions and audit logging",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.104.1",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy>=2.0.23",
        "cryptography>=41.0.0",
        "structlog>=23.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "phiguard=phiguard.cli:main",
        ],
    },
)
