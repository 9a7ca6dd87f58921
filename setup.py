"""
Setup script for lms-player.

lms-player is a terminal client for the LMS platform. It serves two roles:

1. Course Player - Work through course lessons and quizzes, saving progress
2. Practice Tests - Timed multi-section tests with text, choice and spoken answers

The 'lmsplayer' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="lms-player",
    version="1.0.0",
    description="Terminal course player and practice-test runner for the LMS platform",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="UniCou",
    packages=find_packages(include=["lmsplayer", "lmsplayer.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.4.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lmsplayer=lmsplayer.delivery.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="lms e-learning practice-test cli education",
)
