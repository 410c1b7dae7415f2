"""
Source code extractors (Python, MATLAB).

Pulls a leading description block, top-level imports and top-level
declarations out of a script with line-anchored patterns. Only column-0
declarations are listed; methods and nested functions are not. Lines that
start inside a multi-line string literal (docstrings included) are never
taken for code.
"""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass
from typing import Optional

from inboxdocs.models.schemas import (
    BodyFragment,
    DocumentSummary,
    FragmentKind,
    InputFile,
    ReferenceEntry,
    SupportedType,
)
from inboxdocs.utils.helpers import count_lines

from .base import Extractor

# Shebang, encoding declarations, comments, blank lines and __future__
# imports may precede the module docstring.
_PY_DOCSTRING_RE = re.compile(
    r'\A\ufeff?'
    r'(?:[ \t]*(?:#[^\n]*)?\n)*'
    r'(?:[ \t]*from[ \t]+__future__[^\n]*\n(?:[ \t]*(?:#[^\n]*)?\n)*)*'
    r'[ \t]*[rRuU]?(?:"""(.*?)"""|\'\'\'(.*?)\'\'\')',
    re.DOTALL,
)
_PY_PRAGMA_RE = re.compile(r'^#!|^#.*coding[:=]')
_PY_IMPORT_RE = re.compile(r'^(?:import|from)[ \t]+[\w.]')
_PY_DECLARATION_RE = re.compile(
    r'(?:async[ \t]+)?def[ \t]+(?P<function>\w+)|class[ \t]+(?P<class>\w+)'
)
# Comments and string literals, leftmost first, so a quote inside a comment
# (or a hash inside a string) is consumed by the right alternative.
_PY_LITERAL_RE = re.compile(
    r'#[^\n]*'
    r'|"""(?:\\.|[^\\])*?"""'
    r"|'''(?:\\.|[^\\])*?'''"
    r'|"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'",
    re.DOTALL,
)
# Rest of a def/class header after the closing parenthesis (or the name).
_PY_HEADER_TAIL_RE = re.compile(
    r'[ \t]*(?:->[ \t]*(?P<returns>[^\n]*?))?[ \t]*:[ \t]*(?:#[^\n]*)?(?:\n|\Z)'
)
_PY_BODY_DOCSTRING_RE = re.compile(
    r'(?:[ \t]*(?:#[^\n]*)?\n)*[ \t]+[rRuU]?(?:"""(.*?)"""|\'\'\'(.*?)\'\'\')',
    re.DOTALL,
)
_DOC_SECTION_RE = re.compile(
    r'^(Args|Arguments|Parameters|Returns|Yields|Raises|Attributes|'
    r'Example|Examples|Note|Notes):[ \t]*(.*)$'
)

_M_FUNCTION_RE = re.compile(
    r'^function[ \t]+(?:\[?[\w, \t]*\]?[ \t]*=[ \t]*)?(\w+)',
    re.MULTILINE,
)
_M_IMPORT_RE = re.compile(r'^import[ \t]+[\w.*]')


@dataclass(slots=True)
class Declaration:
    """A top-level ``class`` or ``def`` and what its header and docstring say."""

    kind: str  # "class" or "function"
    name: str
    signature: str
    docstring: str = ""


def extract_python_docstring(content: str) -> str:
    """
    Return the module docstring, or the leading comment block if there is none.

    Returns an empty string when neither exists.
    """
    match = _PY_DOCSTRING_RE.match(content)
    if match:
        return (match.group(1) or match.group(2) or "").strip()
    return _leading_comment_block(content, "#", skip=_PY_PRAGMA_RE)


def string_body_lines(content: str) -> set[int]:
    """Indexes (0-based, split on ``\\n``) of lines that begin inside a string literal."""
    inside: set[int] = set()
    for match in _PY_LITERAL_RE.finditer(content):
        text = match.group(0)
        if text.startswith("#") or "\n" not in text:
            continue
        first = content.count("\n", 0, match.start())
        inside.update(range(first + 1, first + text.count("\n") + 1))
    return inside


def extract_python_imports(content: str) -> list[str]:
    """Top-level import lines in order; parenthesised continuations are joined."""
    skipped = string_body_lines(content)
    imports: list[str] = []
    lines = content.split("\n")
    index = 0
    while index < len(lines):
        line = lines[index]
        if index not in skipped and _PY_IMPORT_RE.match(line):
            statement = line.rstrip()
            if "(" in statement and ")" not in statement:
                while index + 1 < len(lines) and ")" not in statement:
                    index += 1
                    statement += " " + lines[index].strip()
                statement = re.sub(r'\(\s+', '(', statement)
            imports.append(statement)
        index += 1
    return imports


def extract_python_declarations(content: str) -> list[Declaration]:
    """Top-level classes and functions in source order, with signatures and docstrings."""
    skipped = string_body_lines(content)
    declarations: list[Declaration] = []
    offset = 0
    for index, line in enumerate(content.split("\n")):
        match = None if index in skipped else _PY_DECLARATION_RE.match(line)
        if match:
            declarations.append(_declaration_at(content, offset + match.end(), match))
        offset += len(line) + 1
    return declarations


def _declaration_at(content: str, position: int, match: re.Match) -> Declaration:
    """Read the header and docstring of the declaration whose name ends at ``position``."""
    is_class = bool(match.group("class"))
    name = match.group("class") or match.group("function")

    arguments: Optional[str] = None
    cursor = position
    while cursor < len(content) and content[cursor] in " \t":
        cursor += 1
    if cursor < len(content) and content[cursor] == "(":
        close = _matching_paren(content, cursor)
        if close != -1:
            arguments = _squash(content[cursor + 1:close])
            cursor = close + 1

    returns = None
    docstring = ""
    tail = _PY_HEADER_TAIL_RE.match(content, cursor)
    if tail:
        returns = tail.group("returns")
        body = _PY_BODY_DOCSTRING_RE.match(content, tail.end())
        if body:
            docstring = body.group(1) if body.group(1) is not None else body.group(2)

    if is_class:
        signature = f"class {name}({arguments})" if arguments else f"class {name}"
    else:
        signature = f"{name}({arguments or ''})"
        if returns:
            signature += f" -> {_squash(returns)}"

    return Declaration(
        kind="class" if is_class else "function",
        name=name,
        signature=signature,
        docstring=format_docstring(docstring),
    )


def _matching_paren(content: str, open_index: int) -> int:
    """Index of the parenthesis closing the one at ``open_index``, or -1."""
    depth = 0
    index = open_index
    while index < len(content):
        char = content[index]
        if char in "\"'":
            literal = _PY_LITERAL_RE.match(content, index)
            if literal:
                index = literal.end()
                continue
        elif char == "#":
            newline = content.find("\n", index)
            index = len(content) if newline == -1 else newline
            continue
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def _squash(text: str) -> str:
    """One-line form of a possibly multi-line parameter list, comments dropped."""
    text = _PY_LITERAL_RE.sub(lambda m: "" if m.group(0).startswith("#") else m.group(0), text)
    text = " ".join(text.split())
    text = re.sub(r'([(\[{])\s+', r'\1', text)
    return re.sub(r',\s*$', '', text)


def format_docstring(docstring: str) -> str:
    """
    Docstring as Markdown.

    Google style section headers (``Args:``, ``Returns:``, ...) become bold
    labels and the entries indented under them become a bullet list; deeper
    indented lines continue the previous entry.
    """
    if not docstring or not docstring.strip():
        return ""

    out: list[str] = []
    in_section = False
    entry_indent: Optional[int] = None
    for line in inspect.cleandoc(docstring).splitlines():
        stripped = line.strip()
        header = _DOC_SECTION_RE.match(line)
        if header:
            label = f"**{header.group(1)}:**"
            if header.group(2):
                label += f" {header.group(2)}"
            out.extend(["", label, ""])
            in_section = True
            entry_indent = None
            continue
        if not stripped:
            out.append("")
            continue
        indent = len(line) - len(line.lstrip())
        if in_section and indent:
            if entry_indent is None or indent <= entry_indent:
                entry_indent = indent
                out.append(f"- {stripped}")
            else:
                out[-1] += f" {stripped}"
            continue
        in_section = False
        out.append(line)

    text = "\n".join(out)
    return re.sub(r'\n{3,}', '\n\n', text).strip()


def _leading_comment_block(content: str, marker: str, skip: re.Pattern | None = None) -> str:
    """First contiguous run of ``marker`` comment lines, markers removed."""
    collected: list[str] = []
    for line in content.lstrip("\ufeff").splitlines():
        stripped = line.strip()
        if not collected:
            if not stripped or (skip is not None and skip.match(stripped)):
                continue
        if not stripped.startswith(marker):
            break
        collected.append(stripped.lstrip(marker).strip())
    return "\n".join(collected).strip()


class PythonExtractor(Extractor):
    """Python scripts and modules."""

    file_type = SupportedType.PYTHON
    extensions = (".py",)
    output_suffix = "_py"
    format_label = "Python Module"
    tags = ("python", "module")

    def extract(self, input_file: InputFile) -> DocumentSummary:
        content = self.text_of(input_file)

        docstring = extract_python_docstring(content)
        imports = extract_python_imports(content)
        declarations = extract_python_declarations(content)

        classes = [d for d in declarations if d.kind == "class"]
        functions = [d for d in declarations if d.kind == "function"]

        return self.base_summary(
            input_file,
            stats={
                "Lines": count_lines(content),
                "Classes": len(classes),
                "Functions": len(functions),
            },
            sections=[d.name for d in declarations],
            fragments=[
                BodyFragment(kind=FragmentKind.DESCRIPTION, heading="Description", text=docstring),
                BodyFragment(
                    kind=FragmentKind.DEPENDENCIES,
                    heading="Dependencies",
                    text="\n".join(imports),
                    language="python",
                ),
                BodyFragment(
                    kind=FragmentKind.REFERENCE,
                    heading="API Reference",
                    entries=[
                        ReferenceEntry(signature=d.signature, doc=d.docstring)
                        for d in declarations
                    ],
                ),
                self.source_fragment(content, "python", input_file.filename),
            ],
            download_label="Download .py",
        )


class MatlabExtractor(Extractor):
    """MATLAB scripts and function files."""

    file_type = SupportedType.MATLAB
    extensions = (".m",)
    output_suffix = "_m"
    format_label = "MATLAB"
    tags = ("matlab", "code")

    def extract(self, input_file: InputFile) -> DocumentSummary:
        content = self.text_of(input_file)

        # Help text conventionally follows the function line.
        description = _leading_comment_block(content, "%", skip=_M_FUNCTION_RE)
        imports = [line.rstrip() for line in content.splitlines() if _M_IMPORT_RE.match(line)]
        functions = _M_FUNCTION_RE.findall(content)

        return self.base_summary(
            input_file,
            stats={
                "Lines": count_lines(content),
                "Functions": len(functions),
            },
            sections=functions,
            fragments=[
                BodyFragment(kind=FragmentKind.DESCRIPTION, heading="Description", text=description),
                BodyFragment(
                    kind=FragmentKind.DEPENDENCIES,
                    heading="Dependencies",
                    text="\n".join(imports),
                    language="matlab",
                ),
                BodyFragment(
                    kind=FragmentKind.LISTING,
                    heading="Functions",
                    items=[f"`{name}()`" for name in functions],
                ),
                self.source_fragment(content, "matlab", input_file.filename),
            ],
            download_label="Download .m",
        )
