from setuptools import setup, find_packages

setup(
    name="stream-sketch",
    version="0.1.0",
    description="Bounded-memory streaming sketches: counting, membership, cardinality, frequency and rank",
    author="adamfilli",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.13",
)
