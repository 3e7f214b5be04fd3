"""Setup script for the sensorbridge package."""

from setuptools import find_packages, setup

setup(
    name="sensorbridge",
    version="0.1.0",
    description="MQTT to MySQL sensor telemetry bridge with a JSON query API",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pymysql",
        "pyyaml",
        "python-dotenv",
        "paho-mqtt>=2.0.0",
        "aiohttp>=3.9",
        "rich",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-asyncio",
            "black",
            "isort",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "sensorbridge=sensorbridge.bridge:main",
            "sensorbridge-display=sensorbridge.display:main",
        ],
    },
)
