"""
File Ingestion Domain

Monitors the inbox directory for documents and turns each into a
documentation page:
- Source code (Python, MATLAB) -> description, imports, declarations, source
- Documents (LaTeX, Markdown, reStructuredText, HTML) -> title, sections, content
- Notebooks -> cell statistics and flattened contents
- PDFs and plain text -> statistics and an embedded or verbatim copy
"""

__all__ = ["collectors", "processors", "exceptions"]
