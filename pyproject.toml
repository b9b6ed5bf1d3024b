[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "castv2"
version = "0.1.0"
description = "Control Chromecast devices over the Cast v2 protocol: discover, launch apps, play media and YouTube videos"
requires-python = ">=3.10"
keywords = ["chromecast", "cast", "castv2", "mdns", "media", "youtube"]
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
    "Topic :: Multimedia :: Video :: Display",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests",
    "dnspython",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
castv2 = "castv2.device:main"

[tool.hatch.build.targets.wheel]
packages = ["castv2"]

[tool.pytest.ini_options]
addopts = "-ra"
