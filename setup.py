"""
Setup script for the imgsearch package.

Install with:
    pip install -e .

Or build distribution:
    python setup.py sdist bdist_wheel
"""

from setuptools import setup, find_packages
from pathlib import Path
import re

# Read version from __init__.py (single source of truth)
init_path = Path(__file__).parent / "imgsearch" / "__init__.py"
with open(init_path, encoding="utf-8") as f:
    version_match = re.search(r'^__version__\s*=\s*[\'"]([^\'"]*)[\'"]', f.read(), re.MULTILINE)
    if not version_match:
        raise RuntimeError("Unable to find version string.")
    version = version_match.group(1)

# Read README for long description
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="imgsearch",
    version=version,
    description="Find visually similar images with a flat perceptual-hash database",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "Pillow>=9.0.0",
        "imagehash>=4.0.0",
        "numpy>=1.20.0",
        "flask>=2.0.0",
        "requests>=2.25.0",
        "urllib3>=2.3.0",
        "pillow-heif>=0.10.0",  # HEIC/HEIF format support
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
        "progress": [
            "tqdm>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "imgsearch=imgsearch.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Environment :: Web Environment",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
    ],
    keywords="image search perceptual hash similarity phash",
)
