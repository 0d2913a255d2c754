from setuptools import setup, find_packages

setup(
    name="litter_core",
    version="0.1.0",
    description="Core EXIF location and record storage utilities for Litter Map",
    packages=find_packages(),
    install_requires=[
        "Pillow>=9.0",
        "piexif>=1.1",
        "pydantic>=2.0",
    ],
    python_requires=">=3.9",
)
