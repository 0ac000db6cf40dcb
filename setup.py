from setuptools import setup, find_packages

setup(
    name="gemini-gateway",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "fastapi>=0.110",
        "starlette",
        "httpx>=0.27",
        "pydantic>=2.5",
        "uvicorn",
        "python-dotenv",
        "PyYAML",
        "structlog",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "pytest-httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "gemini-gateway=gemini_gateway.cli:main",
        ],
    },
    description="An OpenAI-compatible gateway in front of the Gemini API.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Framework :: FastAPI",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
)
