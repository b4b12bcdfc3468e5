from setuptools import setup, find_packages

from linkhub import __version__

setup(
    name="linkhub",
    version=__version__,
    description="Social post scheduling, queueing and multi-platform publishing",
    author="Your Name",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1.7",
        "cryptography>=41.0.0",
        "fastapi>=0.109.0",
        "httpx>=0.25.2",
        "psycopg2-binary>=2.9.9",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-dateutil>=2.8.2",
        "python-dotenv>=1.0.0",
        "rich>=13.7.0",
        "sqlalchemy>=2.0.23",
        "uvicorn>=0.27.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "linkhub-cli=cli.main:cli",
            "linkhub-worker=linkhub.main:main",
            "linkhub-api=linkhub.api.app:run",
        ],
    },
    python_requires=">=3.10",
)
