"""
Setup script for multischema

Multi-document JSON schema to Zod code generator.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")
else:
    long_description = "Multi-document JSON schema to Zod code generator"

setup(
    name="multischema",
    version="0.1.0",
    description="Generate Zod modules from JSON schema documents that reference each other",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["multischema", "multischema.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.5.0",
        "prometheus-client>=0.19.0",
        "typer>=0.12.0",
        "rich>=13.7.0",
        "pyyaml>=6.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
        ],
        "dev": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "multischema=multischema.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Code Generators",
    ],
    keywords="json-schema zod codegen typescript",
)
