[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "neuralnote"
version = "0.1.0"
description = "Turn note and onset posteriorgrams into MIDI note events, post-process them by key and rhythm, and write MIDI files."
requires-python = ">=3.10"
keywords = ["midi", "transcription", "audio", "pitch", "quantization", "music"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
]
dependencies = [
    "numpy",
    "scipy",
    "mido",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["neuralnote"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
