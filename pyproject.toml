[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xprin"
version = "0.1.0"
description = "Configuration checks and result reporting for Crossplane composition test suites"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["crossplane", "testing", "kubernetes", "compositions", "test-results"]
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
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["xprin"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
