#!/usr/bin/python
# -*- encoding: utf-8 -*-
import ast
import re

from setuptools import find_packages
from setuptools import setup

## The version number is kept in one place only, caldavsync.__version__,
## and picked up from there (same trick as the icalendar library uses)
_version_re = re.compile(r"__version__\s+=\s+(.*)")
with open("caldavsync/__init__.py", "rb") as f:
    version = str(
        ast.literal_eval(_version_re.search(f.read().decode("utf-8")).group(1))
    )

if __name__ == "__main__":
    test_packages = [
        "pytest",
        "pytest-coverage",
        "coverage",
        "tzlocal",
    ]

    setup(
        name="caldavsync",
        version=version,
        description="CalDAV (RFC4791) client with etag/ctag based synchronization",
        long_description=open("README.md").read(),
        long_description_content_type="text/markdown",
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: Apache Software License",
            "Operating System :: OS Independent",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
            "Topic :: Office/Business :: Scheduling",
            "Topic :: Software Development :: Libraries " ":: Python Modules",
        ],
        keywords="caldav calendar sync",
        license="Apache-2.0",
        packages=find_packages(exclude=["tests", "tests.*"]),
        include_package_data=True,
        zip_safe=False,
        python_requires=">=3.9",
        install_requires=[
            "lxml",
            "requests",
            "icalendar",
            "typing_extensions",
        ],
        extras_require={
            "test": test_packages,
        },
    )
