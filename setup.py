from setuptools import setup, find_packages
from pathlib import Path

# -------------------------------
# Long Description
# -------------------------------
this_directory = Path(__file__).parent
readme_file = this_directory / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# -------------------------------
# Load Dependencies
# -------------------------------
def read_requirements(file_path="requirements.txt"):
    """Read dependencies from requirements.txt (ignore comments & blank lines)."""
    requirements = []
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and not line.startswith("-"):
                    requirements.append(line)
    except FileNotFoundError:
        print("⚠️ requirements.txt not found; using defaults.")
    return requirements


install_requires = read_requirements()

# -------------------------------
# Package Configuration
# -------------------------------
setup(
    name="chainsure",
    version="1.0.0",
    author="ChainSure Team",
    description="Fraud-scored insurance claim adjudication with on-ledger (Aptos) settlement, served over FastAPI.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/chainsure/chainsure",
    license="MIT",
    packages=find_packages(include=["chainsure*"]),
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.10",
    install_requires=install_requires,
    extras_require={
        "test": [
            "pytest>=8.3.3",
            "pytest-mock>=3.14.0",
            "responses>=0.25.0",
        ],
        "dev": [
            "pytest>=8.3.3",
            "pytest-mock>=3.14.0",
            "responses>=0.25.0",
            "black>=24.8.0",
            "flake8>=7.0.0",
            "coverage>=7.6.0",
            "pre-commit>=3.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "chainsure-api=chainsure.main:run_api",  # Run FastAPI app
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "Topic :: Office/Business :: Financial",
        "Framework :: FastAPI",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Operating System :: OS Independent",
    ],
    project_urls={
        "Documentation": "https://github.com/chainsure/chainsure/wiki",
        "Bug Tracker": "https://github.com/chainsure/chainsure/issues",
        "Changelog": "https://github.com/chainsure/chainsure/releases",
    },
)
