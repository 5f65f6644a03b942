# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the Intern MCP Server
"""

from setuptools import setup, find_packages

setup(
    name="intern-mcp-server",
    version="0.1.0",
    description="MCP server exposing internship recruiting tools over streamable HTTP",
    package_dir={"": "backend"},
    packages=find_packages("backend", include=["intern_mcp", "intern_mcp.*"]),
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.0.0",
        "httpx>=0.27.0",
        "aiohttp>=3.9.0",
        "PyYAML>=6.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "intern-mcp=intern_mcp.cli:main",
        ]
    },
)
