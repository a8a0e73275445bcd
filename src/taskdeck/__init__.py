"""Task tracker with LLM-assisted task entry."""

__version__ = "0.1.0"
