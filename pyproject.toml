[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "syncbus"
version = "0.1.0"
description = "Event-driven one-way directory mirroring with a pub/sub pipeline and worker pool"
requires-python = ">=3.10"
keywords = ["sync", "mirror", "filesystem", "watcher", "event-bus", "worker-pool"]
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
    "Topic :: System :: Archiving :: Mirroring",
]
dependencies = [
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
syncbus = "syncbus.service:main"

[tool.hatch.build.targets.wheel]
packages = ["syncbus"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
