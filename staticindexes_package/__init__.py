"""Static index.html generation for plain file servers."""

__version__ = "0.1.0"
