[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "baton"
version = "0.1.0"
description = "Listing, metadata search, transfer and permission operations on iRODS data objects and collections"
requires-python = ">=3.10"
dependencies = []
keywords = ["irods", "catalog", "metadata", "acl", "avu", "data management"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["baton"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
