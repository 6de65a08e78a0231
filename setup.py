# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the Module Ecosystem Registry Updater
"""

from setuptools import setup, find_packages

setup(
    name="eco-registry",
    version="1.0.0",
    description="Keeps a registry of module paths and their latest versions from the module index and proxy",
    author="Jason Cafarelli",
    packages=find_packages(include=["ecoregistry", "ecoregistry.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.25.0",
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "SQLAlchemy[asyncio]>=2.0.0",
        "aiosqlite>=0.19.0",
        "aiofiles>=23.0.0",
        "semver>=3.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "ecoregistry=ecoregistry.main:main",
        ]
    },
)
