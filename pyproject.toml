[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sloopkit"
version = "0.1.0"
description = "Extract, deduplicate, filter, count, record and replay Kubernetes watch events"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["kubernetes", "watch", "events", "history", "monitoring", "jsonlogic"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sloopkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
