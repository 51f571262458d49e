"""tipjar: capture tips, classify them with an LLM, and review them later."""

__version__ = "0.1.0"
