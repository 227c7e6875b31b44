#!/usr/bin/env python3
from setuptools import setup, find_packages


VERSION = "0.1.0"


with open("README.md") as fobj:
    long_description = fobj.read().strip()


if __name__ == "__main__":
    setup(
        name="sitestack",
        version=VERSION,
        description="Declarative S3 static website deployments",
        long_description=long_description,
        long_description_content_type="text/markdown",
        packages=find_packages(include=["sitestack", "sitestack.*"]),
        python_requires=">=3.9",
        install_requires=[
            "boto3>=1.28",
            "botocore",
            "PyYAML",
        ],
        extras_require={
            "test": [
                "pytest",
                "moto[s3]>=5",
            ],
        },
        entry_points={
            "console_scripts": ["sitestack=sitestack.__main__:main"],
        },
        classifiers=[
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: MIT License",
            "Topic :: Utilities",
        ],
    )
