[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "opampclient"
version = "0.1.0"
description = "Transport-independent client side of the OpAMP agent management protocol: state synchronisation, message batching, server message processing and package syncing."
requires-python = ">=3.10"
dependencies = []
keywords = ["opamp", "agent", "management", "telemetry", "remote-config", "packages"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["opampclient"]

[tool.hatch.build.targets.sdist]
include = ["opampclient", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
