[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nitrotools"
version = "0.1.0"
description = "Readers for Nintendo DS Nitro model and animation files, with skeleton reconstruction"
requires-python = ">=3.10"
keywords = ["nitro", "nsbmd", "nsbca", "nds", "3d", "model", "animation", "skeleton"]
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
    "Topic :: Multimedia :: Graphics :: 3D Modeling",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nitrotools"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
