"""LaTeX document generation with chat-completion providers."""

__version__ = "0.1.0"
