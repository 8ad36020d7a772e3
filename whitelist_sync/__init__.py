"""Share one Minecraft whitelist and op list between servers through a database."""

__version__ = "0.1.0"
