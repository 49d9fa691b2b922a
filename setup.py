from setuptools import setup, find_packages

setup(
    name="dbexplorer",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "pyyaml",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "dbexplorer=dbexplorer.cli:main",
        ],
    },
    description="Extract, enrich, persist and export a semantic model of a database schema.",
)
