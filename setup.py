from setuptools import setup, find_packages

setup(
    name="eksa-lifecycle",
    version="0.1.0",
    packages=find_packages(include=["eksa", "eksa.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2",
        "PyYAML",
        "requests",
        "rich",
        "typer",
        "cli-core-yo<2",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["eksa=eksa.cli:main"],
    },
)
