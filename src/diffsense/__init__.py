"""diffsense - run branch analysis without disturbing the working tree."""

__version__ = "0.1.0"
