[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ebuskit"
version = "0.1.0"
description = "eBUS data types, enhanced adapter protocol framing and byte transports"
requires-python = ">=3.10"
dependencies = []
keywords = ["ebus", "heating", "home-automation", "enhanced-protocol", "transport"]
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
    "Topic :: Home Automation",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ebuskit"]

[tool.pytest.ini_options]
addopts = "-ra"
