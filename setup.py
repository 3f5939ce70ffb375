from pathlib import Path

from setuptools import find_namespace_packages, setup

# Load packages from requirements.txt
BASE_DIR = Path(__file__).parent
with open(Path(BASE_DIR, "requirements.txt")) as file:
    required_packages = [
        ln.strip() for ln in file.readlines() if ln.strip() and not ln.startswith("#")
    ]

# Define our package
setup(
    name="LearnPath",
    version="0.1.0",
    description="Learning-module catalog and progress tracker for the SwiftUI bootcamp exercises",
    python_requires=">=3.10",
    packages=find_namespace_packages(include=["learnpath", "learnpath.*"]),
    package_data={"learnpath": ["schemas/*.json", "data/*.json"]},
    include_package_data=True,
    install_requires=required_packages,
    extras_require={
        "test": ["pytest>=7.0"],
        "dev": ["pytest>=7.0", "pre-commit==2.19.0"],
    },
)
