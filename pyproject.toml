[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ibcrelay"
version = "0.1.0"
description = "A relayer that carries IBC handshakes, packets and acknowledgements between two configured chains"
requires-python = ">=3.10"
keywords = ["ibc", "relayer", "blockchain", "interchain", "light-client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
yrly = "ibcrelay.cli.root:main"

[tool.hatch.build.targets.wheel]
packages = ["ibcrelay"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
