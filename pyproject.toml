[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mcproto"
version = "0.1.0"
description = "Minecraft Java Edition protocol: VarInts, packet framing with zlib compression, declarative packet fields, an offline-mode client, a status server and example bots"
requires-python = ">=3.10"
dependencies = []
keywords = ["minecraft", "protocol", "varint", "packets", "bot", "networking"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mcproto-server = "mcproto.server:main"
mcproto-bot = "mcproto.bots:main"

[tool.hatch.build.targets.wheel]
packages = ["mcproto"]

[tool.hatch.build.targets.sdist]
include = ["mcproto", "tests", "pyproject.toml", "README.md"]

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
