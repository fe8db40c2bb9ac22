"""Starlette building blocks for a gateway that routes AI prompts to LLM vendors."""

__version__ = "0.1.0"