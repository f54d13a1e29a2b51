"""
.. include:: ../README.md
"""

__all__ = [
    "assets",
    "config",
    "exceptions",
    "factory",
    "manifest",
    "network",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
