"""Building blocks for serving Telegram media over HTTP through direct, streamable links."""

__version__ = "3.1.0"