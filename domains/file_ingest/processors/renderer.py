"""
MDX renderer.

Turns a DocumentSummary into a RenderedDocument. Knows nothing about the
extractor that produced the summary: two summaries with equal fields render
to identical documents.

Body layout, empty blocks omitted entirely:
    # Title
    asset links
    statistics panel
    metadata, description, dependencies, listing, API reference,
    source/content, preview
"""

from __future__ import annotations

import re

from inboxdocs.models.schemas import (
    BodyFragment,
    DocumentSummary,
    FragmentKind,
    RenderedDocument,
)
from inboxdocs.utils.helpers import code_fence

FRAGMENT_ORDER = {kind: index for index, kind in enumerate(FragmentKind)}

_CODE_SPAN_RE = re.compile(r'(`[^`\n]*`)')


def escape_mdx(text: str) -> str:
    """Escape JSX-significant characters outside inline code spans."""
    parts = _CODE_SPAN_RE.split(text)
    for index in range(0, len(parts), 2):
        parts[index] = (
            parts[index]
            .replace("{", "\\{")
            .replace("}", "\\}")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
        )
    return "".join(parts)


def inline_code(text: str) -> str:
    """Code span that survives backticks inside ``text``."""
    if "`" not in text:
        return f"`{text}`"
    return f"`` {text} ``"


def render_frontmatter(summary: DocumentSummary) -> list[tuple[str, object]]:
    """Ordered frontmatter pairs: title, sidebar_label, tags, then extras."""
    title = f"{summary.title} - {summary.format_label}" if summary.format_label else summary.title
    pairs: list[tuple[str, object]] = [
        ("title", title),
        ("sidebar_label", summary.sidebar_label),
    ]
    if summary.tags:
        pairs.append(("tags", list(summary.tags)))
    for key, value in summary.extras.items():
        pairs.append((key, value))
    return pairs


def render_asset_links(summary: DocumentSummary) -> str:
    if not summary.asset_url:
        return ""
    filename = (summary.filename or "").replace('"', "&quot;")
    download_name = f' download="{filename}"' if filename else " download"
    links = [f'<a href="{summary.asset_url}"{download_name}>{summary.download_label}</a>']
    if summary.show_raw_link:
        links.append(
            f'<a href="{summary.asset_url}" target="_blank" rel="noopener noreferrer">View Raw</a>'
        )
    return " | ".join(links)


def render_stats(stats: dict[str, int]) -> str:
    """Statistics panel as a one-row table."""
    if not stats:
        return ""
    labels = list(stats)
    return "\n".join([
        "| " + " | ".join(escape_mdx(label) for label in labels) + " |",
        "| " + " | ".join("---" for _ in labels) + " |",
        "| " + " | ".join(str(stats[label]) for label in labels) + " |",
    ])


def _with_heading(fragment: BodyFragment, block: str) -> str:
    if fragment.heading:
        return f"## {escape_mdx(fragment.heading)}\n\n{block}"
    return block


def render_fragment(fragment: BodyFragment, summary: DocumentSummary) -> str:
    """Render one body block; returns an empty string for blocks with nothing to show."""
    if fragment.kind == FragmentKind.PREVIEW:
        if not summary.asset_url:
            return ""
        lines = []
        if fragment.text:
            lines.append(f":::tip\n{escape_mdx(fragment.text)}\n:::\n")
        frame_title = escape_mdx(summary.title).replace('"', "&quot;")
        lines.append(
            f'<iframe src="{summary.asset_url}" width="100%" '
            f'height="{fragment.height or "500px"}" title="{frame_title}" />'
        )
        return _with_heading(fragment, "\n".join(lines))

    if fragment.is_empty():
        return ""

    if fragment.kind in (FragmentKind.METADATA, FragmentKind.DESCRIPTION):
        return _with_heading(fragment, escape_mdx(fragment.text.strip()))

    if fragment.kind == FragmentKind.DEPENDENCIES:
        if fragment.language:
            return _with_heading(fragment, code_fence(fragment.text, fragment.language))
        return _with_heading(fragment, "\n".join(f"- `{item}`" for item in fragment.items))

    if fragment.kind == FragmentKind.LISTING:
        if fragment.ordered:
            lines = [f"{number}. {escape_mdx(item)}" for number, item in enumerate(fragment.items, 1)]
        else:
            lines = [f"- {escape_mdx(item)}" for item in fragment.items]
        return _with_heading(fragment, "\n".join(lines))

    if fragment.kind == FragmentKind.REFERENCE:
        blocks = []
        for entry in fragment.entries:
            block = f"### {inline_code(entry.signature)}"
            if entry.doc.strip():
                block += f"\n\n{escape_mdx(entry.doc.strip())}"
            blocks.append(block)
        return _with_heading(fragment, "\n\n".join(blocks))

    if fragment.kind == FragmentKind.SOURCE:
        info = fragment.language or "text"
        if fragment.title:
            info += f' title="{fragment.title}"'
        if fragment.line_numbers:
            info += " showLineNumbers"
        return _with_heading(fragment, code_fence(fragment.text, info))

    # CONTENT is page-ready Markdown and goes in verbatim.
    return _with_heading(fragment, fragment.text.strip("\n"))


def render_body(summary: DocumentSummary) -> str:
    blocks = [
        f"# {escape_mdx(summary.title)}",
        render_asset_links(summary),
        render_stats(summary.stats),
    ]
    for fragment in sorted(summary.fragments, key=lambda f: FRAGMENT_ORDER[f.kind]):
        blocks.append(render_fragment(fragment, summary))
    return "\n\n".join(block for block in blocks if block) + "\n"


def render(summary: DocumentSummary) -> RenderedDocument:
    """Render ``summary`` to an MDX document. Pure; no I/O."""
    return RenderedDocument(
        frontmatter=render_frontmatter(summary),
        body=render_body(summary),
    )
