"""moxen - package manager for World of Warcraft addons."""

__version__ = "0.1.0"
