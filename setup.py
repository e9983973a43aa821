#!/usr/bin/env python3
"""
Setup script for Game2048
"""

from setuptools import setup, find_packages

# Read the README file
def read_readme():
    with open("README.md", "r", encoding="utf-8") as fh:
        return fh.read()

# Read requirements
def read_requirements():
    with open("requirements.txt", "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="game2048",
    version="0.1.0",
    description="Game2048: a 2048 sliding tile engine with a terminal front end and a Gymnasium environment",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    py_modules=["main"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Games/Entertainment :: Puzzle Games",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "train": ["stable-baselines3>=2.0", "torch>=2.0"],
        "dev": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "game2048=main:main",
        ],
    },
    keywords=[
        "2048",
        "puzzle",
        "game",
        "reinforcement-learning",
        "gymnasium",
    ],
)
