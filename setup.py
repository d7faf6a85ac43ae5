"""Setup configuration for gnocchi package"""

from setuptools import setup, find_packages

setup(
    name="gnocchi-gwas",
    version="0.1.0",
    author="gnocchi Development Team",
    description="Genotype QC and genotype/phenotype observation assembly for Genome Wide Association Studies",
    long_description=open("README.md").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["gnocchi", "gnocchi.*"]),
    install_requires=[
        "numpy>=1.19.0",
        "pandas>=1.2.0",
        "tables>=3.6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gnocchi-convert=gnocchi.tools.convert_genotype:main",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
)
