[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "rpzdecode"
version = "0.1.0"
description = "Library for decoding .rpz binary telemetry packets of a laser-gyro inertial unit, with calibration model correction, averaging and text tables"
requires-python = ">=3.10"
dependencies = []
keywords = ["telemetry", "inertial", "gyroscope", "accelerometer", "decoder", "crc16"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Information Analysis",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools]
packages = ["rpzdecode"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
