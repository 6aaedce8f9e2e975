from setuptools import setup, find_packages

setup(
    name="intake-analyzer",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["run_api"],
    python_requires=">=3.9",
    install_requires=[
        "openai>=1.3.0",
        "pydantic>=2.5.0",
        "click>=8.1.0",
        "python-dotenv>=1.0.0",
        "fastapi>=0.104.0",
        "uvicorn>=0.24.0",
        "python-multipart>=0.0.6",
        "httpx>=0.25.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "anyio>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "intake-analyze=intake_analyzer.cli:main",
        ],
    },
)
