[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "klyra"
version = "0.1.0"
description = "Workspace tools for coding agents: file access, unified-diff patching, git, project maps, search and planning."
requires-python = ">=3.10"
dependencies = []
keywords = ["agent", "tools", "llm", "workspace", "unified-diff", "git", "project-map"]
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
packages = ["klyra"]

[tool.pytest.ini_options]
addopts = "-ra"
