[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nrikit"
version = "0.1.0"
description = "Building blocks for container node-resource-interface plugins: request/result types, a stdin/stdout plugin runner, YAML object dumps, device and mount injection from annotations, and change tracking between plugin indices."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "containers",
    "nri",
    "oci",
    "plugins",
    "devices",
    "mounts",
    "annotations",
    "diff",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nrikit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
