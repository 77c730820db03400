[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pandora"
version = "0.1.0"
description = "Load generation building blocks: request schedules, an ammo queue, a number provider and a pluggable component registry."
requires-python = ">=3.11"
dependencies = []
keywords = [
    "load testing",
    "traffic generation",
    "benchmark",
    "schedule",
    "plugin registry",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing :: Traffic Generation",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pandora"]

[tool.hatch.build.targets.sdist]
include = ["pandora", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
