[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tilealgo"
version = "0.1.0"
description = "Tile grid algorithms: cost-weighted pathfinding, wave function collapse and LDtk-style entity helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["tilemap", "pathfinding", "wave-function-collapse", "procedural-generation", "ldtk", "games"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tilealgo = "tilealgo.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tilealgo"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
