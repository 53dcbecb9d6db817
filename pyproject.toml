[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mob"
version = "0.1.0"
description = "File-backed state for a crew of coding agents: agent registry, beads (work items), reports, soldati, turfs, code sweeps, health patrol and a chat session loop."
requires-python = ">=3.11"
keywords = ["agents", "orchestration", "task-tracking", "jsonl", "toml"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development",
]
dependencies = [
    "tomli-w>=1.0",
    "filelock>=3.12",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["mob"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
