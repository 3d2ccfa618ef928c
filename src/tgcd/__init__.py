"""tgcd: content-addressed tag store service."""

__version__ = "0.1.0"
