[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slsclient"
version = "0.6.0"
description = "Client for a log service: ETL jobs, tags, resource records, scheduled SQL, stores and a shard consumer library"
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "log service", "consumer group", "scheduled sql", "etl"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["slsclient"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
