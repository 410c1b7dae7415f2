"""
Base class for content extractors.

An extractor turns already-read, already-decoded content into a
DocumentSummary. Extractors never touch the filesystem: the pipeline owns
reads and writes, so every extractor can be tested on plain strings.

Structural extraction is shallow (line-anchored regular
expressions, not grammars). Swapping a regex extractor for a real parser
only means registering a different class for the same SupportedType.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from inboxdocs.models.schemas import (
    BodyFragment,
    DocumentSummary,
    FragmentKind,
    InputFile,
    SupportedType,
)


class Extractor(ABC):
    """Contract shared by every content extractor."""

    file_type: ClassVar[SupportedType]
    extensions: ClassVar[tuple[str, ...]]
    format_label: ClassVar[str] = ""
    tags: ClassVar[tuple[str, ...]] = ()
    # Binary types get raw bytes; text types get UTF-8 decoded str.
    binary: ClassVar[bool] = False
    # Appended to the output filename; unique per type so paper.tex and
    # paper.pdf (or notes.md and notes.py) never share a page.
    output_suffix: ClassVar[str] = ""

    @property
    def name(self) -> str:
        return self.file_type.value

    @abstractmethod
    def extract(self, input_file: InputFile) -> DocumentSummary:
        """Build a summary from ``input_file.content``. Must not perform I/O."""

    def base_summary(self, input_file: InputFile, title: str | None = None, **fields) -> DocumentSummary:
        """Summary pre-filled with the per-type defaults."""
        fields.setdefault("sidebar_label", input_file.filename)
        fields.setdefault("format_label", self.format_label or None)
        fields.setdefault("tags", list(self.tags))
        return DocumentSummary(
            title=title or input_file.stem,
            filename=input_file.filename,
            **fields,
        )

    def text_of(self, input_file: InputFile) -> str:
        """Decoded content; decoding belongs to the pipeline, which reports failures as ReadError."""
        content = input_file.content
        if isinstance(content, bytes):
            raise TypeError(f"{self.__class__.__name__} expects decoded text, got bytes")
        return content

    @staticmethod
    def source_fragment(
        content: str,
        language: str,
        filename: str,
        heading: str = "Source Code",
        line_numbers: bool = True,
    ) -> BodyFragment:
        return BodyFragment(
            kind=FragmentKind.SOURCE,
            heading=heading,
            text=content,
            language=language,
            title=filename,
            line_numbers=line_numbers,
        )

    @staticmethod
    def preview_fragment(heading: str = "Preview", note: str = "", height: str = "500px") -> BodyFragment:
        return BodyFragment(kind=FragmentKind.PREVIEW, heading=heading, text=note, height=height)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(file_type={self.file_type.value!r})"
