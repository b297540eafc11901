import os

from setuptools import find_packages, setup

README = os.path.join(os.path.dirname(__file__), "README.md")


def readme() -> str:
    with open(README, encoding="utf-8") as f:
        return f.read()


setup(
    name="ast_schema_to_code",
    version="0.1.0",
    description="Generate AST node dataclasses, identity/position accessors and a closed node view from a declarative schema",
    long_description=readme(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Software Development :: Compilers",
        "Intended Audience :: Developers",
    ],
    keywords="ast schema code generation dataclass visitor template",
    license="MIT",
    packages=find_packages(),
    python_requires=">=3.12",
    install_requires=[
        "click>=8.0.0",
        "jinja2>=3.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ast_schema_to_code=ast_schema_to_code.ast_schema_to_code:ast_schema_to_code",
        ],
    },
    include_package_data=True,
    package_data={
        "ast_schema_to_code": ["templates/**/*.jinja2", "tests/test_data/**/*"],
    },
    zip_safe=False,
)
