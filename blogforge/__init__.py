"""blogforge: a five-stage LLM blog post generation pipeline."""

__version__ = "0.1.0"
