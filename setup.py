#!/usr/bin/env python3
"""
Setup configuration for tune-resolver
Resolve song queries and links from YouTube, Spotify, Suno and live streams
into playable track descriptors
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "aiohttp>=3.9.1",
    "spotipy>=2.22.1",
    "ytmusicapi>=1.3.2",
    "ffmpeg-python>=0.2.0",
    "beautifulsoup4>=4.12.2",
    "pyyaml>=6.0.1",
    "python-dotenv>=1.0.0",
    "tqdm>=4.66.1",
    "cachetools>=5.3.0",
    "click>=8.1.7",
    "rich-click>=1.7.0",
]

setup(
    name="tune-resolver",
    version="0.1.0",
    author="tune-resolver Team",
    description="Resolve YouTube, Spotify, Suno and live stream queries into playable tracks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["tune_resolver", "tune_resolver.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Internet :: WWW/HTTP",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tune-resolver=tune_resolver.cli:main",
        ],
    },
    keywords="youtube spotify suno hls music resolver cli",
)
