[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "midipi"
version = "0.1.0"
description = "MIDI stream parsing, channel level monitoring, front-panel controls and character-LCD drivers for a MIDI synthesizer"
requires-python = ">=3.10"
dependencies = []
keywords = ["midi", "sysex", "synthesizer", "lcd", "hd44780", "rotary-encoder", "mister"]
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
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["midipi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
