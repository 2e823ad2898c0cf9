from setuptools import setup, find_packages

setup(
    name="tourify_accounts",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "pydantic>=2.0",
        "pydantic-settings",
        "redis",
        "PyJWT",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    python_requires=">=3.9",
)
