from __future__ import annotations

from pathlib import Path

from setuptools import find_packages, setup

PROJECT_ROOT = Path(__file__).resolve().parent
README = (PROJECT_ROOT / "README.md").read_text(encoding="utf-8")

setup(
    name="nepali-calendar-frappe",
    version="0.1.0",
    description="Bikram Sambat calendar engine and date picker for Frappe environments",
    long_description=README,
    long_description_content_type="text/markdown",
    author="Nepali Calendar Contributors",
    author_email="maintainers@example.com",
    url="https://github.com/nepali-calendar/nepali-calendar-frappe",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "nepali_calendar": ["data/*.json"],
    },
    install_requires=[],
    extras_require={
        "frappe": ["frappe>=14.0.0"],
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.10",
    classifiers=[
        "Framework :: Frappe",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: Nepali",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Office/Business",
    ],
)
