"""
OPAQUE Engine - Asymmetric password-authenticated key exchange
Setup configuration for PyPI package
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme = Path(__file__).parent / "Readme.md"
long_description = readme.read_text(encoding="utf-8") if readme.exists() else ""

setup(
    name="opaque-engine",
    version="1.0.0",
    description="OPAQUE asymmetric PAKE: OPRF, credential envelopes and triple-DH login",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Security :: Cryptography",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "cryptography>=44.0.0",
        "spake2>=0.9",
        "click>=8.1.0",
        "rich>=13.0.0",
        "prompt-toolkit>=3.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "opaque-engine=opaque_engine.cli:main",
        ],
    },
    include_package_data=True,
    keywords="security cryptography pake opaque oprf password authentication",
)
