[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "railbus"
version = "0.1.0"
description = "Model railway bus protocols: cab bus master logic, cab bus sniffer and DCC track signal decoder"
requires-python = ">=3.10"
keywords = ["dcc", "model railway", "cab bus", "throttle", "decoder", "serial"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: Terminals :: Serial",
]
dependencies = [
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
railbus-sniffer = "railbus.sniffer:main"

[tool.hatch.build.targets.wheel]
packages = ["railbus"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
