from setuptools import setup, find_namespace_packages

setup(
    name="booklet",
    version="0.1.0",
    description="Personal library and reading tracker",
    packages=find_namespace_packages(include=['booklet*', 'booklet_cli*']),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "Click",
        "SQLAlchemy>=2.0",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "booklet=booklet_cli.main:main",
        ],
    },
)
