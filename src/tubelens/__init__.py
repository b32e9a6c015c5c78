"""tubelens: cached, filterable YouTube caption transcripts for LLM clients."""

__version__ = "0.1.0"

__all__ = ["__version__"]
