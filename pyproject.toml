[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bossarena"
version = "0.1.0"
description = "A threaded TCP game server for a cooperative boss-fight arena with moving traps and a binary packet protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["game server", "multiplayer", "boss fight", "ring buffer", "binary protocol"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Side-Scrolling/Arcade Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
bossarena = "bossarena.world:main"

[tool.hatch.build.targets.wheel]
packages = ["bossarena"]

[tool.pytest.ini_options]
addopts = "-ra"
