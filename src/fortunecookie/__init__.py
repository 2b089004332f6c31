"""fortunecookie: resilient LLM-backed fortune cookie messages."""

__version__ = "0.1.0"
