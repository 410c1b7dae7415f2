"""
File Ingestion Processors

Shared processing utilities for file ingestion:
- base.py, code.py, markup.py, notebook.py, binary.py, text.py - Content extractors
- registry.py - SupportedType to extractor mapping
- renderer.py - DocumentSummary to MDX rendering
- router.py - Type-based output and asset locations
- pipeline.py - End-to-end processing of one file or a whole inbox
"""

from .base import Extractor
from .pipeline import InboxProcessor, iter_candidate_files
from .registry import ExtractorRegistry, build_default_registry, get_registry
from .renderer import render

__all__ = [
    "Extractor",
    "ExtractorRegistry",
    "InboxProcessor",
    "build_default_registry",
    "get_registry",
    "iter_candidate_files",
    "render",
]
