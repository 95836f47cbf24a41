"""
setup.py for the AURA cognitive mirror.
"""
from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

setup(
    name="aura-mirror",
    version="0.3.0",
    author="AURA Framework Team",
    description="AURA: Cognitive Mirror - chat session with a Chrono-Positioning Engine for time-stamped particles",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["aura", "aura.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Visualization",
    ],
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=6.0",
        "pydantic>=2.0.0",
        "numpy>=1.24.0",
    ],
    extras_require={
        "server": [
            "fastapi>=0.100.0",
            "uvicorn>=0.23.0",
        ],
        "dev": [
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "fastapi>=0.100.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "aura=aura.cli:main",
        ],
    },
)
