"""
Setup script for quizzine.

Quizzine is the quiz session engine and local persistence layer of a
course-quiz learning app:

1. Question bank - fetched once, cached, indexed by id/course/week
2. Quiz sessions - weekly, full, bookmark, Smart Boost and custom quizzes
3. Local state - attempts, bookmarks, confidence, streaks, with migrations

The 'quizzine' command is the terminal front end.
"""

from setuptools import find_packages, setup

setup(
    name="quizzine",
    version="1.0.0",
    description="Quiz session engine with local progress tracking and Smart Boost review",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["quizzine", "quizzine.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Local storage
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
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
            "quizzine=quizzine.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="quiz learning streak spaced-review cli education",
)
