[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tvhclient"
version = "0.1.0"
description = "Client library for the tvheadend HTSP protocol: messages, subscriptions, channels, EPG events, decoder queues and settings"
requires-python = ">=3.10"
dependencies = []
keywords = ["tvheadend", "htsp", "dvb", "epg", "television"]
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
    "Topic :: Multimedia :: Video :: Display",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tvhclient"]

[tool.pytest.ini_options]
addopts = "-ra"
