[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bsprad"
version = "0.1.0"
description = "Building blocks for radiosity lighting of BSP maps: visibility tracing, direct lights, phong edge smoothing, sample grids and light interpolation"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bsp",
    "radiosity",
    "lightmap",
    "lighting",
    "level-design",
    "game-tools",
]
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
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bsprad"]

[tool.hatch.build.targets.sdist]
include = ["bsprad", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
