"""chatdesk: per-user multi-provider chat session core."""

__version__ = "0.1.0"
