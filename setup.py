from setuptools import setup, find_packages

setup(
    name="formatpatch",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        "textual",
        "watchdog>=3.0",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "formatpatch=formatpatch.cli:main",
        ],
    },
    author="Uday Kanth",
    description="Reformat-on-save that applies formatter output as minimal RCS line patches.",
)
