"""
Pydantic models for Inbox Docs.

Shared data models across the ingestion pipeline.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


# =====================================================
# Input Models
# =====================================================

class SupportedType(str, Enum):
    """Recognized input formats. Each has exactly one registered extractor."""
    PYTHON = "python"
    MATLAB = "matlab"
    LATEX = "latex"
    MARKDOWN = "markdown"
    RST = "rst"
    HTML = "html"
    NOTEBOOK = "notebook"
    PDF = "pdf"
    TEXT = "text"


class InputFile(BaseModel):
    """A file read from the inbox, immutable once read."""
    model_config = ConfigDict(frozen=True)

    path: Path
    file_type: SupportedType
    content: Union[bytes, str]  # str for text formats, bytes for binary ones
    size_bytes: int

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def stem(self) -> str:
        return self.path.stem


# =====================================================
# Summary Models
# =====================================================

class FragmentKind(str, Enum):
    """Body block types, declared in rendering order."""
    METADATA = "metadata"
    DESCRIPTION = "description"
    DEPENDENCIES = "dependencies"
    LISTING = "listing"
    REFERENCE = "reference"
    SOURCE = "source"
    CONTENT = "content"
    PREVIEW = "preview"


class ReferenceEntry(BaseModel):
    """One documented declaration: its signature and its docstring."""
    signature: str
    doc: str = ""  # Markdown, Args/Returns sections already formatted


class BodyFragment(BaseModel):
    """Typed content block of a document summary."""
    kind: FragmentKind
    heading: Optional[str] = None
    text: str = ""
    items: List[str] = []
    language: Optional[str] = None  # fence language for source/dependency blocks
    title: Optional[str] = None  # fence title for source blocks
    line_numbers: bool = False
    ordered: bool = False  # enumerated instead of bulleted listing
    height: Optional[str] = None  # preview frame height
    entries: List[ReferenceEntry] = []

    def is_empty(self) -> bool:
        """Previews carry no content of their own; everything else needs text, items or entries."""
        if self.kind == FragmentKind.PREVIEW:
            return False
        return not self.text.strip() and not self.items and not self.entries


class DocumentSummary(BaseModel):
    """Structured metadata and content extracted from one input file."""
    title: str
    sidebar_label: str
    format_label: Optional[str] = None  # e.g. "Python Module", appended to the page title
    tags: List[str] = []
    stats: Dict[str, int] = {}
    sections: List[str] = []
    fragments: List[BodyFragment] = []
    extras: Dict[str, str] = {}  # type specific frontmatter, insertion ordered
    filename: Optional[str] = None
    asset_url: Optional[str] = None
    download_label: str = "Download"
    show_raw_link: bool = True

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, tags: List[str]) -> List[str]:
        """Tags are a set; keep first-seen order so output stays reproducible."""
        return list(dict.fromkeys(tags))

    def fragment(self, kind: FragmentKind) -> Optional[BodyFragment]:
        """Return the first fragment of ``kind``, if any."""
        for fragment in self.fragments:
            if fragment.kind == kind:
                return fragment
        return None


# =====================================================
# Output Models
# =====================================================

FrontmatterValue = Union[str, List[str]]


class RenderedDocument(BaseModel):
    """Final MDX document: ordered frontmatter plus body."""
    frontmatter: List[Tuple[str, FrontmatterValue]] = Field(default_factory=list)
    body: str = ""

    def text(self) -> str:
        """Serialize to MDX text."""
        lines = ["---"]
        for key, value in self.frontmatter:
            if isinstance(value, list):
                items = ", ".join(_quote(item) for item in value)
                lines.append(f"{key}: [{items}]")
            else:
                lines.append(f"{key}: {_quote(value)}")
        lines.append("---")
        return "\n".join(lines) + "\n\n" + self.body


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")
    return f'"{escaped}"'


class OutputLocation(BaseModel):
    """Where a rendered document is written."""
    model_config = ConfigDict(frozen=True)

    directory: Path
    filename: str

    @property
    def path(self) -> Path:
        return self.directory / self.filename


# =====================================================
# Response Models
# =====================================================

class BatchResult(BaseModel):
    """Outcome of a one-shot traversal of the inbox."""
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    outputs: List[Path] = []
