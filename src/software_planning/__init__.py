"""software-planning: namespaced software plans stored in the project tree."""

__version__ = "0.2.0"
