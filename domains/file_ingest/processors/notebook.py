"""
Jupyter notebook extractor.

The only extractor that parses its input as structured data, and the only
one allowed to fail: content that is not a JSON object with a ``cells``
list raises ParseError before any summary exists.
"""

from __future__ import annotations

import json
from typing import Any

from inboxdocs.models.schemas import (
    BodyFragment,
    DocumentSummary,
    FragmentKind,
    InputFile,
    SupportedType,
)
from inboxdocs.utils.helpers import code_fence

from ..exceptions import ParseError
from .base import Extractor
from .markup import markdown_headings, strip_markdown_inline


def cell_source(cell: dict[str, Any]) -> str:
    """Cell source as one string (nbformat stores it as a list of lines or a str)."""
    source = cell.get("source", "")
    if isinstance(source, list):
        return "".join(str(part) for part in source)
    return str(source)


def load_notebook(content: str, path=None) -> dict[str, Any]:
    """Parse notebook JSON; an empty document is an empty notebook."""
    if not content.strip():
        return {"cells": []}

    try:
        notebook = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid notebook JSON: {e.msg} (line {e.lineno})", path) from e

    if not isinstance(notebook, dict):
        raise ParseError("Invalid notebook: top level is not an object", path)

    cells = notebook.get("cells", [])
    if not isinstance(cells, list):
        raise ParseError("Invalid notebook: 'cells' is not a list", path)
    if not all(isinstance(cell, dict) for cell in cells):
        raise ParseError("Invalid notebook: every cell must be an object", path)

    return notebook


def notebook_language(notebook: dict[str, Any]) -> str:
    metadata = notebook.get("metadata")
    if isinstance(metadata, dict):
        language_info = metadata.get("language_info")
        if isinstance(language_info, dict) and language_info.get("name"):
            return str(language_info["name"])
    return "python"


class NotebookExtractor(Extractor):
    """Jupyter notebooks, flattened into one page."""

    file_type = SupportedType.NOTEBOOK
    extensions = (".ipynb",)
    output_suffix = "_ipynb"
    format_label = "Jupyter Notebook"
    tags = ("jupyter", "notebook", "python")

    def extract(self, input_file: InputFile) -> DocumentSummary:
        notebook = load_notebook(self.text_of(input_file), input_file.path)
        cells = notebook.get("cells", [])
        language = notebook_language(notebook)

        code_cells = 0
        markdown_cells = 0
        blocks: list[str] = []
        sections: list[str] = []

        for cell in cells:
            source = cell_source(cell)
            cell_type = cell.get("cell_type")
            if cell_type == "markdown":
                markdown_cells += 1
                blocks.append(source)
                sections.extend(
                    text for text in (strip_markdown_inline(raw) for _, raw, _ in markdown_headings(source))
                    if text
                )
            elif cell_type == "code":
                code_cells += 1
                blocks.append(code_fence(source, language))

        tags = list(self.tags)
        if language not in tags:
            tags.append(language)

        return self.base_summary(
            input_file,
            tags=tags,
            stats={
                "Total Cells": len(cells),
                "Code Cells": code_cells,
                "Markdown Cells": markdown_cells,
            },
            sections=sections,
            fragments=[
                BodyFragment(
                    kind=FragmentKind.CONTENT,
                    heading="Notebook Contents",
                    text="\n\n".join(blocks),
                ),
            ],
            download_label="Download Notebook",
            show_raw_link=False,
        )
