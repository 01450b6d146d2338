[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "inigo"
version = "0.1.0"
description = "Helpers for integration tests of a container scheduling cluster: ports, certificates, checksums, HTTP pollers, an announcement server and a small fixture web server."
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["integration-testing", "test-helpers", "certificates", "ports", "http"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
inigo-go-server = "inigo.go_server:main"

[tool.hatch.build.targets.wheel]
packages = ["inigo"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
