"""
APIForge - Schema-Driven Full-Stack API Generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="apiforge",
    version="1.0.0",
    author="Diegoproggramer",
    author_email="",
    description="⚡ Generate a full Supabase + React API stack from one entity schema",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Diegoproggramer/apiforge",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"apiforge": ["jinja/*.j2"]},
    include_package_data=True,
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
        "Jinja2>=3.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "pytest>=7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "apiforge=apiforge.cli:cli_main",
        ],
    },
    keywords="supabase, generator, api, zod, react-query, code-generator, crud",
    project_urls={
        "Bug Reports": "https://github.com/Diegoproggramer/apiforge/issues",
        "Source": "https://github.com/Diegoproggramer/apiforge",
    },
)
