[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtnetlink"
version = "0.12.0"
description = "Manage Linux network links and IP addresses over the rtnetlink protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["netlink", "rtnetlink", "ip", "linux", "networking"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
rtnetlink = "rtnetlink.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rtnetlink"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
