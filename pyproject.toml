[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "extsort"
version = "0.1.5"
description = "External sorting of data sets that do not fit in memory"
requires-python = ">=3.10"
keywords = ["sort", "sorting", "external-sort", "merge", "msgpack"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Utilities",
]
dependencies = [
    "msgpack",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
extsort = "extsort.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["extsort"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
