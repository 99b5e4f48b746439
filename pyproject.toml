[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "taskqueue"
version = "1.0.0"
description = "HTTP API for creating, tracking and deleting long-running background tasks"
requires-python = ">=3.10"
keywords = ["tasks", "http", "api", "flask", "background-jobs", "wsgi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask>=2.2",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[project.scripts]
taskqueue = "taskqueue.app:main"

[tool.hatch.build.targets.wheel]
packages = ["taskqueue"]

[tool.pytest.ini_options]
addopts = "-ra"
