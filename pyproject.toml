[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "goplsbridge"
version = "0.1.2"
description = "Run gopls queries from Python and get structured locations, symbols, diagnostics and call hierarchies back"
requires-python = ">=3.10"
dependencies = []
keywords = ["gopls", "go", "code-navigation", "call-hierarchy", "diagnostics"]
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
    "Topic :: Software Development",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["goplsbridge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
