"""
Setup configuration for the CodeBuild Automation CDK Python application

Packages the ``codebuild_automation`` library together with the example
stacks and the notification handler.
"""

from setuptools import setup, find_packages

# Read the requirements from requirements.txt
with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

# Read the README file for long description
try:
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()
except FileNotFoundError:
    long_description = "Declarative CodeBuild projects, webhooks and build status notifications for AWS CDK"

setup(
    name="codebuild-automation",
    version="1.0.0",
    description="AWS CDK helpers for CodeBuild automation, build notifications and ECS clusters",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package configuration
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["app"],
    include_package_data=True,

    # Python version requirement
    python_requires=">=3.8",

    # Dependencies
    install_requires=requirements,

    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
            "flake8>=5.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },

    # Entry points for CLI commands
    entry_points={
        "console_scripts": [
            "synth-automation=app:main",
        ],
    },

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Build Tools",
        "Topic :: System :: Systems Administration",
    ],

    keywords=[
        "aws",
        "cdk",
        "codebuild",
        "eventbridge",
        "webhooks",
        "notifications",
        "ecs",
        "cicd",
    ],

    license="Apache License 2.0",
    zip_safe=False,
)
