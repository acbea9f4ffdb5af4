"""groundline: citation grounding and knowledge indexing."""

__version__ = "0.1.0"
