"""monofile: flatten a source tree or archive into a single LLM-ready document."""

__version__ = "0.1.0"
