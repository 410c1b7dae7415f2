"""
Processing pipeline for inbox files.

The only place (besides the watcher) that touches the filesystem:
    1. type from extension        -> UnsupportedTypeError
    2. read + decode              -> ReadError
    3. extract                    -> ParseError
    4. copy original to assets    -> WriteError
    5. render + write the page    -> WriteError

The asset copy happens after extraction, so a file that fails to parse
leaves neither a page nor a fresh asset behind. Both writes go through a
temporary file and a rename.
"""

import os
from pathlib import Path
from typing import Iterator, List, Optional, Union

from loguru import logger

from inboxdocs.models.schemas import BatchResult, InputFile, OutputLocation, SupportedType
from inboxdocs.utils.config import Settings, get_settings
from inboxdocs.utils.helpers import (
    atomic_write_bytes,
    atomic_write_text,
    has_hidden_part,
    normalise_path,
    should_exclude_path,
)

from ..exceptions import InboxError, ReadError, UnsupportedTypeError, WriteError
from .base import Extractor
from .registry import ExtractorRegistry, get_registry
from .renderer import render
from .router import asset_path, asset_url, resolve_output_location


def iter_candidate_files(root: Path, exclude_patterns: Optional[List[str]] = None) -> Iterator[Path]:
    """
    Yield every non-hidden, non-excluded file below ``root`` in sorted order.

    Hidden and excluded directories are pruned, not descended into.
    """
    root = Path(root)
    for current, dirs, filenames in os.walk(root):
        dirs[:] = sorted(
            d for d in dirs
            if not d.startswith(".") and not should_exclude_path(Path(d), exclude_patterns)
        )
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            path = Path(current) / filename
            if should_exclude_path(Path(filename), exclude_patterns):
                continue
            yield path


class InboxProcessor:
    """Turns one inbox file into a documentation page plus an asset copy."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[ExtractorRegistry] = None,
        output_dir: Optional[Path] = None,
        asset_dir: Optional[Path] = None,
        asset_url_prefix: Optional[str] = None,
    ):
        """
        Initialize processor.

        Args:
            settings: Settings instance (defaults to cached settings)
            registry: Extractor registry (defaults to the built-in one)
            output_dir: Default page directory, overrides settings
            asset_dir: Asset copy directory, overrides settings
            asset_url_prefix: Public prefix for asset references, overrides settings
        """
        self.settings = settings or get_settings()
        self.registry = registry or get_registry()
        self.output_dir = normalise_path(Path(output_dir or self.settings.docs_output_dir))
        self.asset_dir = normalise_path(Path(asset_dir or self.settings.asset_dir))
        self.asset_url_prefix = asset_url_prefix or self.settings.asset_url_prefix
        self.exclude_patterns = self.settings.get_exclude_patterns()

    # Filtering -----------------------------------------------------------------

    def supports(self, path: Union[Path, str]) -> bool:
        """Extension check only; no I/O."""
        return self.registry.supports(path)

    def is_generated(self, path: Path) -> bool:
        """True for files this processor wrote itself (pages and asset copies)."""
        path = normalise_path(Path(path))
        for directory in (self.output_dir, self.asset_dir):
            if path == directory or directory in path.parents:
                return True
        return False

    # Single file ---------------------------------------------------------------

    def process(self, input_path: Union[Path, str], output_root: Optional[Path] = None) -> OutputLocation:
        """
        Process one file end to end.

        Args:
            input_path: File to process
            output_root: Page directory (defaults to the configured one)

        Returns:
            Location of the written page

        Raises:
            UnsupportedTypeError, ReadError, ParseError, WriteError
        """
        path = normalise_path(Path(input_path))
        file_type = self.registry.type_for_path(path)
        if file_type is None:
            raise UnsupportedTypeError(path)
        extractor = self.registry.resolve(file_type)

        raw = self.read_raw(path)
        input_file = self.decode(path, file_type, extractor, raw)

        summary = extractor.extract(input_file)

        url = self.copy_asset(path, raw)
        summary = summary.model_copy(update={"asset_url": url})

        document = render(summary)
        root = Path(output_root) if output_root is not None else self.output_dir
        location = resolve_output_location(path, file_type, root, extractor.output_suffix)
        self.write_page(location, document.text(), path)

        return location

    def read_raw(self, path: Path) -> bytes:
        """Read the file; every failure (including a vanished file) becomes ReadError."""
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ReadError("File no longer exists", path) from e
        except IsADirectoryError as e:
            raise ReadError("Path is a directory", path) from e
        except OSError as e:
            raise ReadError(f"Cannot read file: {e.strerror or e}", path) from e

    def decode(self, path: Path, file_type: SupportedType, extractor: Extractor, raw: bytes) -> InputFile:
        if extractor.binary:
            content: Union[bytes, str] = raw
        else:
            try:
                content = raw.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise ReadError(f"Not valid UTF-8 ({e.reason} at byte {e.start})", path) from e
        return InputFile(path=path, file_type=file_type, content=content, size_bytes=len(raw))

    def copy_asset(self, path: Path, raw: bytes) -> str:
        """
        Write the bytes that were extracted into the asset store.

        Returns:
            Public URL of the asset copy
        """
        destination = asset_path(path, self.asset_dir)
        try:
            atomic_write_bytes(destination, raw)
        except OSError as e:
            raise WriteError(f"Cannot copy asset to {destination}: {e.strerror or e}", path) from e
        logger.debug(f"Asset copied: {destination}")
        return asset_url(destination.name, self.asset_url_prefix)

    def write_page(self, location: OutputLocation, text: str, source: Path) -> None:
        try:
            atomic_write_text(location.path, text)
        except OSError as e:
            raise WriteError(f"Cannot write {location.path}: {e.strerror or e}", source) from e

    def process_file_safely(
        self,
        input_path: Union[Path, str],
        output_root: Optional[Path] = None,
    ) -> Optional[OutputLocation]:
        """
        Process one file, logging instead of raising.

        Returns:
            Output location, or None if the file was skipped or failed
        """
        name = Path(input_path).name
        try:
            location = self.process(input_path, output_root)
        except UnsupportedTypeError:
            logger.warning(f"Unsupported file type: {name}")
            return None
        except InboxError as e:
            logger.error(f"Failed to process {name}: {e.message}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error processing {name}: {e}")
            return None

        logger.success(f"Generated MDX for: {name} -> {location.filename}")
        return location

    # Batch ---------------------------------------------------------------------

    def process_batch(self, root: Union[Path, str], output_root: Optional[Path] = None) -> BatchResult:
        """
        Walk ``root`` once and process every supported file in sequence.

        Failures are logged per file and counted; nothing is raised.

        Args:
            root: Inbox directory
            output_root: Page directory (defaults to the configured one)

        Returns:
            BatchResult with processed/failed/skipped counts
        """
        root = normalise_path(Path(root))
        result = BatchResult()

        if not root.is_dir():
            logger.warning(f"Skipping missing inbox: {root}")
            return result

        logger.info(f"Processing existing files in {root}...")

        for path in iter_candidate_files(root, self.exclude_patterns):
            if self.is_generated(path):
                continue
            if not self.supports(path):
                logger.warning(f"Unsupported file type: {path.name}")
                result.skipped += 1
                continue

            try:
                location = self.process(path, output_root)
            except InboxError as e:
                logger.error(f"Failed: {path.name} - {e.message}")
                result.failed += 1
                continue
            except Exception as e:
                logger.exception(f"Failed: {path.name} - {e}")
                result.failed += 1
                continue

            logger.success(f"Processed: {path.name}")
            result.processed += 1
            result.outputs.append(location.path)

        logger.success(
            f"Processed {result.processed} files "
            f"({result.failed} failed, {result.skipped} skipped)"
        )
        return result

    def hidden_or_excluded(self, path: Path, root: Path) -> bool:
        """Event-boundary filter shared with the watcher."""
        try:
            relative = Path(path).relative_to(root)
        except ValueError:
            relative = Path(Path(path).name)
        return has_hidden_part(relative) or should_exclude_path(relative, self.exclude_patterns)
