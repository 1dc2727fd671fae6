[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sonoplugins"
version = "0.1.0"
description = "Sonobuoy plugin helpers, a cluster requirements checker and a cluster inventory reporter"
requires-python = ">=3.10"
keywords = ["kubernetes", "sonobuoy", "plugin", "inventory", "requirements", "cluster"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "requests>=2.25",
    "pyyaml>=5.4",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.22",
]

[project.scripts]
cluster-inventory = "sonoplugins.inventory.cli:main"
requirements-check = "sonoplugins.requirements.app:main"

[tool.hatch.build.targets.wheel]
packages = ["sonoplugins"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
