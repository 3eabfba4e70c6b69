[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "c4id"
version = "0.8"
description = "C4 IDs (SMPTE ST 2114:2017): consistent identifiers for data, with ID slices and trees, an SQLite-backed key/link store and a command-line tool"
requires-python = ">=3.10"
dependencies = []
keywords = ["c4", "c4id", "identifier", "sha512", "base58", "merkle", "hash", "smpte"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Environment :: Console",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
c4 = "c4id.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["c4id"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
