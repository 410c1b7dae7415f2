"""
Extractor Registry - maps each SupportedType to its extractor.

The registry is the single source of truth for which extensions the inbox
accepts: the watcher and the batch traversal both ask it, so adding a format
means registering one extractor and nothing else.

Usage:
    registry = get_registry()
    if registry.supports(path):
        extractor = registry.resolve(registry.type_for_path(path))
        summary = extractor.extract(input_file)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, Union

from loguru import logger

from inboxdocs.models.schemas import SupportedType
from inboxdocs.utils.helpers import get_file_extension

from ..exceptions import UnsupportedTypeError
from .base import Extractor
from .binary import PdfExtractor
from .code import MatlabExtractor, PythonExtractor
from .markup import HtmlExtractor, LatexExtractor, MarkdownExtractor, RstExtractor
from .notebook import NotebookExtractor
from .text import TextExtractor

DEFAULT_EXTRACTORS: tuple[type[Extractor], ...] = (
    PythonExtractor,
    MatlabExtractor,
    LatexExtractor,
    MarkdownExtractor,
    RstExtractor,
    HtmlExtractor,
    NotebookExtractor,
    PdfExtractor,
    TextExtractor,
)


class ExtractorRegistry:
    """Registry of content extractors, one per SupportedType."""

    def __init__(self):
        self._by_type: dict[SupportedType, Extractor] = {}
        self._by_extension: dict[str, SupportedType] = {}

    def register(self, extractor: Extractor | type[Extractor]) -> None:
        """
        Register an extractor.

        Args:
            extractor: An extractor instance or class

        Raises:
            ValueError: If its type, one of its extensions or its output suffix
                is already taken, or it declares no output suffix
        """
        if isinstance(extractor, type):
            extractor = extractor()

        if extractor.file_type in self._by_type:
            raise ValueError(f"Extractor already registered for type: {extractor.file_type.value}")

        extensions = [ext.lower() for ext in extractor.extensions]
        for ext in extensions:
            if ext in self._by_extension:
                raise ValueError(
                    f"Extension {ext} already claimed by {self._by_extension[ext].value}"
                )

        # Distinct suffixes keep pages of different types apart.
        if not extractor.output_suffix:
            raise ValueError(f"Extractor {extractor.name} declares no output suffix")
        for other in self._by_type.values():
            if other.output_suffix == extractor.output_suffix:
                raise ValueError(
                    f"Output suffix {extractor.output_suffix} already used by {other.name}"
                )

        self._by_type[extractor.file_type] = extractor
        for ext in extensions:
            self._by_extension[ext] = extractor.file_type

        logger.debug(f"Registered extractor: {extractor.name} ({', '.join(extensions)})")

    def verify_complete(self) -> None:
        """Fail fast if any SupportedType is missing an extractor."""
        missing = [t.value for t in SupportedType if t not in self._by_type]
        if missing:
            raise ValueError(f"No extractor registered for: {', '.join(missing)}")

    def resolve(self, file_type: SupportedType) -> Extractor:
        """
        Get the extractor for ``file_type``.

        Raises:
            UnsupportedTypeError: If no extractor is registered
        """
        try:
            return self._by_type[file_type]
        except KeyError:
            raise UnsupportedTypeError(extension=str(getattr(file_type, "value", file_type))) from None

    def type_for_path(self, path: Union[Path, str]) -> Optional[SupportedType]:
        """Map a path to its SupportedType by extension alone (no I/O)."""
        return self._by_extension.get(get_file_extension(Path(path)))

    def supports(self, target: Union[Path, str, SupportedType]) -> bool:
        """Check a path (by extension) or a type without touching the filesystem."""
        if isinstance(target, SupportedType):
            return target in self._by_type
        return self.type_for_path(target) is not None

    def supported_extensions(self) -> set[str]:
        """Every extension some registered extractor accepts."""
        return set(self._by_extension)

    def __iter__(self) -> Iterator[Extractor]:
        return iter(self._by_type.values())

    def __len__(self) -> int:
        return len(self._by_type)


def build_default_registry() -> ExtractorRegistry:
    """Registry with every built-in extractor, checked for completeness."""
    registry = ExtractorRegistry()
    for extractor in DEFAULT_EXTRACTORS:
        registry.register(extractor)
    registry.verify_complete()
    return registry


@lru_cache()
def get_registry() -> ExtractorRegistry:
    """Get cached default registry."""
    return build_default_registry()
