"""A small command interpreter with pipes, redirections, here-documents and variables."""

__version__ = "0.1.0"
__all__ = ["__version__"]