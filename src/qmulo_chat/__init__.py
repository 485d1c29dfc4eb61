"""Terminal chat client for a local LLM server with natural-language commands."""

__version__ = "0.1.0"
