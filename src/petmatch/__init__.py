"""Lost/found pet matching engine."""

__version__ = "0.1.0"
