"""Application models (transcripts, filters, context bundles)."""
from .generation import (
    ContextBundle,
    FilterCatalog,
    GenerationFilters,
    MetadataSuggestion,
    ReferenceChunk,
    ReferenceDocument,
)

__all__ = [
    "ContextBundle",
    "FilterCatalog",
    "GenerationFilters",
    "MetadataSuggestion",
    "ReferenceChunk",
    "ReferenceDocument",
]
