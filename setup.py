from setuptools import setup, find_packages

setup(
    name="factorpower",
    version="0.1.0",
    packages=find_packages(include=["factorpower", "factorpower.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "pandas",
        "matplotlib",
        "scipy",
        "joblib",
    ],
    extras_require={
        "progress": ["tqdm"],
        "test": ["pytest", "statsmodels", "tqdm"],
    },
    description="Monte Carlo Power Analysis for 2x2 Factorial Designs",
)
