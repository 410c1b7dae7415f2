"""
Type-based routing of inbox files to their output locations.

Both mappings are pure functions of the input path: re-processing a file
always targets the same page and the same asset, so a rerun overwrites
instead of accumulating copies.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

from inboxdocs.models.schemas import OutputLocation, SupportedType
from inboxdocs.utils.helpers import hash_text, normalise_path, sanitize_filename

PAGE_EXTENSION = ".mdx"


def page_stem(stem: str) -> str:
    """
    Sanitized stem, tagged with a short hash of the original when sanitizing
    changed it, so "a.b" and "a_b" do not share a page.
    """
    safe = sanitize_filename(stem)
    if safe != stem:
        safe = f"{safe}-{hash_text(stem)[:8]}"
    return safe


def resolve_output_location(
    input_path: Path,
    file_type: SupportedType,
    output_root: Path,
    suffix: str = "",
) -> OutputLocation:
    """
    Compute where the rendered page for ``input_path`` goes.

    Only the sanitized stem of the input survives, so the page always lands
    directly inside ``output_root``. ``suffix`` (e.g. ``_pdf``) separates
    types that share a basename.

    Args:
        input_path: Inbox file
        file_type: Its resolved type
        output_root: Directory receiving the pages
        suffix: Per-type filename suffix

    Returns:
        OutputLocation inside ``output_root``
    """
    root = normalise_path(Path(output_root))
    stem = Path(input_path).stem
    filename = f"{page_stem(stem)}{sanitize_filename(suffix) if suffix else ''}{PAGE_EXTENSION}"

    location = OutputLocation(directory=root, filename=filename)
    # sanitize_filename leaves no separators or dot-segments; keep it that way.
    if location.path.parent != root:
        raise ValueError(f"Output for {input_path} ({file_type.value}) escapes {root}")
    return location


def asset_path(input_path: Path, asset_root: Path) -> Path:
    """Asset copy location: the original basename inside ``asset_root``."""
    return normalise_path(Path(asset_root)) / Path(input_path).name


def asset_url(filename: str, url_prefix: str) -> str:
    """Public reference to an asset copy, as embedded in rendered pages."""
    return f"{url_prefix.rstrip('/')}/{quote(filename)}"
