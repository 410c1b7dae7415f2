"""
Markup and document extractors (LaTeX, Markdown, reStructuredText, HTML).

Each recognizes a title construct and section headings with light pattern
matching. Every heading, title and author string goes through a
strip-markup transform so formatting syntax never leaks into the page
prose.
"""

from __future__ import annotations

import html
import re

from inboxdocs.models.schemas import (
    BodyFragment,
    DocumentSummary,
    FragmentKind,
    InputFile,
    SupportedType,
)
from inboxdocs.utils.helpers import count_lines

from .base import Extractor


# =====================================================
# LaTeX
# =====================================================

_TEX_LINE_BREAK_RE = re.compile(r'\\\\(?:\[[^\]]*\])?')
_TEX_ESCAPED_RE = re.compile(r'\\([&%$#_{}])')
_TEX_ONE_ARG_RE = re.compile(r'\\[a-zA-Z]+\*?(?:\[[^\]{}]*\])?\{([^{}]*)\}')
_TEX_STANDALONE_RE = re.compile(r'\\[a-zA-Z]+\*?')
_TEX_COMMENT_RE = re.compile(r'(?<!\\)%[^\n]*')
_TEX_ABSTRACT_RE = re.compile(r'\\begin\{abstract\}(.*?)\\end\{abstract\}', re.DOTALL)
_WHITESPACE_RE = re.compile(r'\s+')

# Placeholders keep escaped braces from being removed with grouping braces.
_ESCAPE_PLACEHOLDERS = {"{": "\x00", "}": "\x01"}


def strip_latex(text: str) -> str:
    """
    Reduce a LaTeX fragment to plain text.

    One-argument commands (``\\textbf{x}``, ``\\emph{x}``, ``\\cite{x}`` ...)
    collapse to their argument, innermost first, until nothing changes.
    ``\\\\`` line breaks and argument-less commands are deleted, then any
    leftover grouping braces are dropped and whitespace is collapsed.
    """
    text = _TEX_LINE_BREAK_RE.sub(" ", text)
    text = re.sub(r'\\and\b', ",", text)
    text = _TEX_ESCAPED_RE.sub(lambda m: _ESCAPE_PLACEHOLDERS.get(m.group(1), m.group(1)), text)
    text = text.replace("~", " ")

    previous = None
    while previous != text:
        previous = text
        text = _TEX_ONE_ARG_RE.sub(r'\1', text)

    text = _TEX_STANDALONE_RE.sub("", text)
    text = text.replace("{", "").replace("}", "")
    for char, placeholder in _ESCAPE_PLACEHOLDERS.items():
        text = text.replace(placeholder, char)
    text = re.sub(r'\s+,', ",", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def latex_command_arguments(content: str, command: str) -> list[str]:
    """
    Raw brace-balanced arguments of every ``\\command{...}`` occurrence.

    Starred forms and an optional ``[...]`` argument are accepted.
    """
    pattern = re.compile(r'\\' + re.escape(command) + r'\*?\s*(?:\[[^\]]*\])?\s*\{')
    arguments = []
    for match in pattern.finditer(content):
        start = match.end()
        depth = 1
        index = start
        while index < len(content) and depth:
            char = content[index]
            if char == "\\":
                index += 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
            index += 1
        if depth == 0:
            arguments.append(content[start:index - 1])
    return arguments


class LatexExtractor(Extractor):
    """LaTeX sources."""

    file_type = SupportedType.LATEX
    extensions = (".tex",)
    format_label = "LaTeX Document"
    tags = ("latex", "document")
    output_suffix = "_tex"

    def extract(self, input_file: InputFile) -> DocumentSummary:
        content = self.text_of(input_file)
        body = _TEX_COMMENT_RE.sub("", content)

        titles = latex_command_arguments(body, "title")
        title = strip_latex(titles[0]) if titles else ""

        authors = latex_command_arguments(body, "author")
        author = strip_latex(authors[0]) if authors else ""

        abstract_match = _TEX_ABSTRACT_RE.search(body)
        abstract = strip_latex(abstract_match.group(1)) if abstract_match else ""

        sections = [s for s in (strip_latex(raw) for raw in latex_command_arguments(body, "section")) if s]

        extras = {"author": author} if author else {}

        return self.base_summary(
            input_file,
            title=title,
            stats={
                "Lines": count_lines(content),
                "Sections": len(sections),
            },
            sections=sections,
            extras=extras,
            fragments=[
                BodyFragment(
                    kind=FragmentKind.METADATA,
                    text=f"**Author:** {author}" if author else "",
                ),
                BodyFragment(kind=FragmentKind.DESCRIPTION, heading="Abstract", text=abstract),
                BodyFragment(kind=FragmentKind.LISTING, heading="Sections", items=sections, ordered=True),
                self.source_fragment(content, "latex", input_file.filename),
            ],
            download_label="Download .tex",
        )


# =====================================================
# Markdown
# =====================================================

_MD_FENCE_RE = re.compile(r'^\s*(```|~~~)')
_MD_HEADING_RE = re.compile(r'^(#{1,6})[ \t]+(.+?)[ \t]*#*[ \t]*$')
_MD_FRONTMATTER_RE = re.compile(r'\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)', re.DOTALL)
_MD_FRONTMATTER_TITLE_RE = re.compile(r'^title:[ \t]*["\']?(.*?)["\']?[ \t]*$', re.MULTILINE)


def strip_markdown_inline(text: str) -> str:
    """Drop emphasis, code spans, links and inline HTML from a heading."""
    text = re.sub(r'!?\[([^\]]*)\]\([^)]*\)', r'\1', text)
    text = re.sub(r'<[^>]+>', '', text)
    text = re.sub(r'(\*\*|__)(.+?)\1', r'\2', text)
    text = re.sub(r'(?<![\w*])([*_])(?!\s)(.+?)(?<!\s)\1(?![\w*])', r'\2', text)
    text = re.sub(r'`+([^`]*)`+', r'\1', text)
    text = re.sub(r'~~(.+?)~~', r'\1', text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def markdown_headings(content: str) -> list[tuple[int, str, int]]:
    """(level, raw text, line index) of ATX headings outside fenced code."""
    headings = []
    fence = None
    for index, line in enumerate(content.splitlines()):
        fence_match = _MD_FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif fence == marker:
                fence = None
            continue
        if fence is not None:
            continue
        match = _MD_HEADING_RE.match(line)
        if match:
            headings.append((len(match.group(1)), match.group(2), index))
    return headings


class MarkdownExtractor(Extractor):
    """Markdown documents; the body is passed through as page content."""

    file_type = SupportedType.MARKDOWN
    extensions = (".md", ".markdown")
    output_suffix = "_md"
    tags = ("markdown", "documentation")

    def extract(self, input_file: InputFile) -> DocumentSummary:
        content = self.text_of(input_file)

        title = ""
        frontmatter = _MD_FRONTMATTER_RE.match(content)
        if frontmatter:
            title_match = _MD_FRONTMATTER_TITLE_RE.search(frontmatter.group(1))
            if title_match:
                title = title_match.group(1).strip()
            content_body = content[frontmatter.end():]
        else:
            content_body = content

        headings = markdown_headings(content_body)
        lines = content_body.splitlines()

        title_heading = next((h for h in headings if h[0] == 1), None)
        if title_heading is not None:
            if not title:
                title = strip_markdown_inline(title_heading[1])
            # The page renders its own title heading.
            del lines[title_heading[2]]
            headings = [h for h in headings if h is not title_heading]

        sections = [
            text for text in (strip_markdown_inline(raw) for level, raw, _ in headings if level >= 2)
            if text
        ]

        return self.base_summary(
            input_file,
            title=title,
            stats={
                "Lines": count_lines(content),
                "Sections": len(sections),
            },
            sections=sections,
            fragments=[
                BodyFragment(kind=FragmentKind.LISTING, heading="Sections", items=sections),
                BodyFragment(kind=FragmentKind.CONTENT, text="\n".join(lines).strip()),
            ],
            download_label="Download Original",
            show_raw_link=False,
        )


# =====================================================
# reStructuredText
# =====================================================

_RST_ADORNMENT_RE = re.compile(r'^([=\-~^"\'`*+#:.])\1+[ \t]*$')


def strip_rst_inline(text: str) -> str:
    """Drop emphasis, literals, roles and hyperlink targets from a heading."""
    text = re.sub(r'`([^`<]*?)\s*<[^>]*>`_{1,2}', r'\1', text)
    text = re.sub(r':[\w-]+:`([^`]*)`', r'\1', text)
    text = re.sub(r'``(.+?)``', r'\1', text)
    text = re.sub(r'\*\*(.+?)\*\*', r'\1', text)
    text = re.sub(r'\*(.+?)\*', r'\1', text)
    text = re.sub(r'`([^`]*)`_{0,2}', r'\1', text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def rst_headings(content: str) -> list[tuple[str, str]]:
    """(adornment char, title) of every underlined (optionally overlined) heading."""
    lines = content.splitlines()
    headings = []
    for index in range(len(lines) - 1):
        text = lines[index].strip()
        underline = lines[index + 1].rstrip()
        if not text or _RST_ADORNMENT_RE.match(text):
            continue
        match = _RST_ADORNMENT_RE.match(underline)
        if match and len(underline) >= len(text):
            headings.append((match.group(1), text))
    return headings


class RstExtractor(Extractor):
    """reStructuredText documents."""

    file_type = SupportedType.RST
    extensions = (".rst",)
    output_suffix = "_rst"
    format_label = "RST Document"
    tags = ("rst", "documentation")

    def extract(self, input_file: InputFile) -> DocumentSummary:
        content = self.text_of(input_file)
        headings = rst_headings(content)

        title = ""
        title_heading = next((h for h in headings if h[0] == "="), None)
        if title_heading is not None:
            title = strip_rst_inline(title_heading[1])
            headings = [h for h in headings if h is not title_heading]

        sections = [text for text in (strip_rst_inline(raw) for _, raw in headings) if text]

        return self.base_summary(
            input_file,
            title=title,
            stats={
                "Lines": count_lines(content),
                "Sections": len(sections),
            },
            sections=sections,
            fragments=[
                BodyFragment(kind=FragmentKind.LISTING, heading="Sections", items=sections),
                self.source_fragment(content, "rst", input_file.filename, heading="Source"),
            ],
            download_label="Download .rst",
            show_raw_link=False,
        )


# =====================================================
# HTML
# =====================================================

_HTML_TITLE_RE = re.compile(r'<title[^>]*>(.*?)</title>', re.IGNORECASE | re.DOTALL)
_HTML_HEADING_RE = re.compile(r'<h([1-3])\b[^>]*>(.*?)</h\1\s*>', re.IGNORECASE | re.DOTALL)
_HTML_TAG_RE = re.compile(r'<[^>]+>')


def strip_html(text: str) -> str:
    """Remove tags and unescape entities."""
    return _WHITESPACE_RE.sub(" ", html.unescape(_HTML_TAG_RE.sub("", text))).strip()


class HtmlExtractor(Extractor):
    """HTML pages, shown in an embedded preview next to their source."""

    file_type = SupportedType.HTML
    extensions = (".html", ".htm")
    output_suffix = "_html"
    format_label = "HTML"
    tags = ("html", "web")

    def extract(self, input_file: InputFile) -> DocumentSummary:
        content = self.text_of(input_file)

        title_match = _HTML_TITLE_RE.search(content)
        title = strip_html(title_match.group(1)) if title_match else ""

        sections = [
            text for text in (strip_html(raw) for _, raw in _HTML_HEADING_RE.findall(content))
            if text
        ]

        return self.base_summary(
            input_file,
            title=title,
            stats={
                "Lines": count_lines(content),
                "Headings": len(sections),
            },
            sections=sections,
            fragments=[
                BodyFragment(kind=FragmentKind.LISTING, heading="Headings", items=sections),
                self.source_fragment(content, "html", input_file.filename),
                self.preview_fragment(),
            ],
            download_label="Download HTML",
        )
