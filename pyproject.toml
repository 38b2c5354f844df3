[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "iactagger"
version = "9.9.9"
description = "Add traceability tags to the functions of Serverless Framework templates, editing only the tag lines"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["iac", "tagging", "serverless", "yaml", "traceability", "devops"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["iactagger"]

[tool.pytest.ini_options]
addopts = "-ra"
