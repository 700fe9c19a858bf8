"""Client-side protocol layer for ELM327-style OBD-II adapters."""

__version__ = "0.1.0"
