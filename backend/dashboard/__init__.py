"""Dashboard for website changes detected by changedetection.io."""

__version__ = "0.1.0"
