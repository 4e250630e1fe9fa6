#!/usr/bin/env python3
"""
Setup script for hsi_mnf - Minimum Noise Fraction transform for hyperspectral images
"""

from setuptools import setup, find_packages
import os

HERE = os.path.dirname(os.path.abspath(__file__))

# Read the README file for long description
def read_readme():
    with open(os.path.join(HERE, "README.md"), "r", encoding="utf-8") as fh:
        return fh.read()

# Read requirements from requirements.txt
def read_requirements():
    with open(os.path.join(HERE, "requirements.txt"), "r", encoding="utf-8") as fh:
        lines = fh.readlines()

    # Parse requirements, skip comments and empty lines
    requirements = []
    for line in lines:
        line = line.strip()
        if line and not line.startswith("#"):
            requirements.append(line)

    return requirements

# Get version from hsi_mnf/__init__.py
def get_version():
    version_file = os.path.join(HERE, "hsi_mnf", "__init__.py")
    with open(version_file, "r", encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"

setup(
    name="hsi-mnf",
    version=get_version(),
    description="Minimum Noise Fraction (MNF) transform for hyperspectral image cubes with streaming statistics, cached covariances and rank-truncated reconstruction",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "Natural Language :: English",
    ],
    python_requires=">=3.8",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=6.0.0",
            "black>=21.0.0",
            "flake8>=3.8.0",
            "wheel>=0.36.0",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="hyperspectral imaging, minimum noise fraction, MNF, denoising, dimensionality reduction, remote sensing, spectral analysis",
    entry_points={
        "console_scripts": [
            "hsi-mnf-info=hsi_mnf.utils:print_package_info",
        ],
    },
)
