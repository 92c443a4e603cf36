[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sagaflow"
version = "0.1.0"
description = "Data records for an order saga (order, payment, shipping) and a client that runs demonstration scenarios against a saga orchestrator over HTTP."
requires-python = ">=3.10"
dependencies = []
keywords = ["saga", "orchestration", "microservices", "distributed transactions", "http client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sagaflow-scenarios = "sagaflow.scenarios:main"

[tool.hatch.build.targets.wheel]
packages = ["sagaflow"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
