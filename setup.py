from setuptools import find_packages, setup


setup(
    name="ai-say",
    version="0.1.0",
    description="Speak text aloud by streaming synthesis from Cartesia over a WebSocket.",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "httpx>=0.27",
        "websockets>=12.0",
        "sounddevice>=0.4.6",
        "structlog>=24.1",
        "rich>=13.7",
        "typer>=0.12",
    ],
    extras_require={
        "dev": ["pytest>=8.0", "pytest-asyncio>=0.23", "ruff>=0.6", "mypy>=1.8"],
    },
    entry_points={"console_scripts": ["ai-say=ai_say.cli:app"]},
)
