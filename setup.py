from setuptools import setup, find_packages

setup(
    name="simanalysis",
    version="0.1.0",
    description="Discrete event simulation engine with statistical output analysis",
    author="simanalysis Team",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "examples.*"]),
    package_data={"configs": ["*.yaml"]},
    py_modules=["run_analysis"],
    install_requires=[
        "numpy>=1.24.0",
        "pyyaml>=6.0",
        "scipy>=1.10.0",
        "matplotlib>=3.7.0",
        "seaborn>=0.12.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": ["simanalysis-run=run_analysis:main"],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
