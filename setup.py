from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="repo-mirror",
    version="1.0.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Tool for migrating git repositories with full history between hosting services",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/repo-mirror",
    packages=find_packages(exclude=["repo_mirror.tests"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "python-gitlab>=5.3,<6.0",
        "python-dotenv>=1.0,<2.0",
        "pydantic>=2.0.0,<3.0.0",
        "pandas>=2.0.0,<3.0.0",
        "requests>=2.31,<3.0",
    ],
    extras_require={
        "dev": [
            "black>=23.3.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.3.0",
            "pre-commit>=3.3.2",
            "pytest>=7.3.1",
            "pytest-cov>=4.1.0",
            "bandit>=1.7.5",
        ],
        "test": [
            "pytest>=7.3.1",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "repo-mirror=repo_mirror.cli.main:main",
        ],
    },
)
