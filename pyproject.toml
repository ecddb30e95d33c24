[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ics20_transfer"
version = "0.1.0"
description = "Model of an ICS20 token-transfer contract with per-channel balance accounting, allow lists and migrations"
requires-python = ">=3.10"
keywords = ["ibc", "ics20", "cw20", "token transfer", "smart contract", "simulation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Office/Business :: Financial",
    "Typing :: Typed",
]
dependencies = [
    "semver",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["ics20_transfer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
