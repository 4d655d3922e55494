[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "plantservant"
version = "0.1.0"
description = "Plant-care community client, server connection handling and sensor uploader speaking a length-prefixed JSON protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "json", "tcp", "sensor", "hts221", "plants", "protocol"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
plantservant-sensor = "plantservant.sensor:main"

[tool.hatch.build.targets.wheel]
packages = ["plantservant"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
