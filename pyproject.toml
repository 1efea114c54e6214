[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mqbroker"
version = "0.1.0"
description = "MQTT broker control tooling: configuration model, JSON import/export, ACL checks, bridge forwarding rules and a stop/reload command line"
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "broker", "acl", "bridge", "configuration", "reload"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mqbroker = "mqbroker.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mqbroker"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
