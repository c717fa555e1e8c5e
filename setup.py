"""Setup configuration for playwright-e2e-framework package."""

from setuptools import setup, find_packages

setup(
    name="playwright-e2e-framework",
    version="1.0.0",
    description="Playwright end-to-end test automation framework for pytest",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"e2e_framework.data": ["*.json"]},
    python_requires=">=3.9",
    install_requires=[
        "playwright>=1.40.0",
        "pytest>=7.4.0",
        "pytest-asyncio>=0.23.0",
        "pytest-xdist>=3.3.0",
        "allure-pytest>=2.13.0",
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
        "PyYAML>=6.0",
        "httpx>=0.25.0",
        "click>=8.1.0",
        "rich>=13.0.0",
        "numpy>=1.24.0",
        "Pillow>=10.0.0",
    ],
    extras_require={
        "dev": [
            "pytest-cov>=4.1.0",
            "pytest-mock>=3.11.0",
            "ruff>=0.1.0",
            "mypy>=1.5.0",
            "black>=23.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "e2e-framework=e2e_framework.cli.app:main",
        ],
    },
)
