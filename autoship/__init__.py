"""autoship: label-driven semantic releases for GitHub projects."""

__version__ = "0.4.0"
