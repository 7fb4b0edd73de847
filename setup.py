from setuptools import find_packages, setup

setup(
    name="fem-axisym",
    version="0.1.0",
    description="Axisymmetric finite-element core: solid, membrane and interface elements",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
