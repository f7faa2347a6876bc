"""
Zeno Generator - Incremental schema-driven code generation
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="zenogen",
    version="0.1.0",
    author="Zeno Team",
    author_email="",
    description="⚡ Schema-driven code generation with incremental change detection",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "Jinja2>=3.1.0",
        "watchdog>=3.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "zenogen=zenogen.cli:main",
        ],
        # Generator plugins register here, e.g.
        #   "models = my_package.generators:ModelsGenerator"
        "zenogen.generators": [],
    },
    keywords="generator, schema, code-generator, incremental, watcher, python",
)
