[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fargatecli"
version = "0.3.0"
description = "Certificate, load balancer and log operations for containers on AWS Fargate, driven through client objects you supply"
requires-python = ">=3.10"
keywords = ["aws", "fargate", "acm", "elbv2", "route53", "cloudwatch", "certificates", "load-balancer"]
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
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "cachetools>=5.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["fargatecli"]

[tool.hatch.build.targets.sdist]
include = ["fargatecli", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
