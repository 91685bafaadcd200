# setup.py
from setuptools import setup, find_packages

setup(
    name="url_scout",
    version="0.1.0",
    description="Асинхронный агрегатор URL url-scout: провайдеры, нормализация, инкрементальный кэш",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "aiohttp>=3.9",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.2",
        "beautifulsoup4>=4.12",
        "lxml>=4.9",
        "redis>=5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "url-scout=url_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
