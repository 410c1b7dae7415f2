from pathlib import Path

import pytest

from domains.file_ingest.exceptions import UnsupportedTypeError
from domains.file_ingest.processors.base import Extractor
from domains.file_ingest.processors.code import PythonExtractor
from domains.file_ingest.processors.registry import ExtractorRegistry, build_default_registry
from inboxdocs.models.schemas import SupportedType


class ScriptExtractor(Extractor):
    file_type = SupportedType.PYTHON
    extensions = (".pyw",)

    def extract(self, input_file):
        return self.base_summary(input_file)


class MarkdownAliasExtractor(Extractor):
    file_type = SupportedType.MARKDOWN
    extensions = (".PY",)

    def extract(self, input_file):
        return self.base_summary(input_file)


def test_default_registry_covers_every_type():
    registry = build_default_registry()

    assert len(registry) == len(SupportedType)
    assert {extractor.file_type for extractor in registry} == set(SupportedType)


def test_supported_extensions():
    assert build_default_registry().supported_extensions() == {
        ".py", ".m", ".tex", ".md", ".markdown", ".rst",
        ".html", ".htm", ".ipynb", ".pdf", ".txt",
    }


@pytest.mark.parametrize(
    "path, expected",
    [
        ("paper.tex", SupportedType.LATEX),
        ("PAPER.PDF", SupportedType.PDF),
        ("inbox/latex/notes.Markdown", SupportedType.MARKDOWN),
        ("page.htm", SupportedType.HTML),
        ("archive.tar.gz", None),
        ("Makefile", None),
    ],
)
def test_type_for_path(path, expected):
    assert build_default_registry().type_for_path(Path(path)) is expected


def test_supports_paths_and_types():
    registry = build_default_registry()
    assert registry.supports("script.py")
    assert not registry.supports("image.png")
    assert registry.supports(SupportedType.NOTEBOOK)
    assert not ExtractorRegistry().supports(SupportedType.NOTEBOOK)


def test_duplicate_type_is_rejected():
    registry = ExtractorRegistry()
    registry.register(PythonExtractor)
    with pytest.raises(ValueError, match="already registered"):
        registry.register(ScriptExtractor())


def test_duplicate_extension_is_rejected_case_insensitively():
    registry = ExtractorRegistry()
    registry.register(PythonExtractor)
    with pytest.raises(ValueError, match="already claimed"):
        registry.register(MarkdownAliasExtractor)
    assert len(registry) == 1


def test_verify_complete_names_missing_types():
    registry = ExtractorRegistry()
    registry.register(PythonExtractor)
    with pytest.raises(ValueError, match="latex"):
        registry.verify_complete()


def test_resolve_unknown_type_raises():
    with pytest.raises(UnsupportedTypeError) as exc_info:
        ExtractorRegistry().resolve(SupportedType.PDF)
    assert exc_info.value.error_code == "UNSUPPORTED_TYPE_ERROR"
    assert exc_info.value.extension == "pdf"


class SilentLatexExtractor(Extractor):
    file_type = SupportedType.LATEX
    extensions = (".ltx",)

    def extract(self, input_file):
        return self.base_summary(input_file)


class ClashingLatexExtractor(SilentLatexExtractor):
    output_suffix = "_py"


def test_extractor_without_output_suffix_is_rejected():
    with pytest.raises(ValueError, match="declares no output suffix"):
        ExtractorRegistry().register(SilentLatexExtractor)


def test_duplicate_output_suffix_is_rejected():
    registry = ExtractorRegistry()
    registry.register(PythonExtractor)
    with pytest.raises(ValueError, match="Output suffix _py already used by python"):
        registry.register(ClashingLatexExtractor)
    assert len(registry) == 1


def test_default_output_suffixes_are_distinct():
    suffixes = [extractor.output_suffix for extractor in build_default_registry()]
    assert all(suffixes)
    assert len(set(suffixes)) == len(suffixes)
