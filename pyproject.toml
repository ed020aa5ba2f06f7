[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bsvwire"
version = "0.1.0"
description = "Encoding and decoding of Bitcoin SV peer-to-peer wire messages: transactions, version and verack."
requires-python = ">=3.10"
dependencies = []
keywords = ["bitcoin", "bsv", "p2p", "wire", "protocol", "serialization", "transaction"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bsvwire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
