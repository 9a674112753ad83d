"""Setup script for the PML package."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="pml_et",
    version="0.1.0",
    author="PML Developers",
    description="Penman-Monteith-Leuning GPP and evapotranspiration model for gridded data",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["pml_et", "pml_et.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.21.0",
        "pandas>=1.3.0",
        "xarray>=0.19.0",
        "netCDF4>=1.5.0",
        "rasterio>=1.2.0",
        "affine<3",
        "rioxarray>=0.8.0",
        "click>=8.0.0",
        "pyyaml>=6.0",
        "loguru>=0.6.0",
        "tqdm>=4.60.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=3.0.0",
            "black>=21.0",
            "flake8>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pml=pml_et.cli.interface:cli",
        ],
    },
    include_package_data=True,
)
