from setuptools import setup, find_packages

setup(
    name="hidden-variable",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "numpy>=1.24.0",
        "pandas>=2.0.0",
        "scipy>=1.10.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    description="Hidden-variable objects: observable outputs over an internal state re-randomized after every interaction",
    python_requires=">=3.10",
)
