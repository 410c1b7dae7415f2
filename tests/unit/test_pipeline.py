from pathlib import Path

import pytest

from domains.file_ingest.exceptions import ParseError, ReadError, UnsupportedTypeError
from domains.file_ingest.processors.pipeline import InboxProcessor, iter_candidate_files


def write(path: Path, content) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def test_process_python_file(processor, inbox, settings):
    source = write(inbox / "python" / "tool.py", '"""Tool."""\n\ndef run():\n    pass\n')

    location = processor.process(source)

    assert location.path == settings.docs_output_dir.resolve() / "tool_py.mdx"
    text = location.path.read_text(encoding="utf-8")
    assert text.startswith('---\ntitle: "tool - Python Module"\n')
    assert '<a href="/static/inbox/tool.py" download="tool.py">Download .py</a>' in text
    assert (settings.asset_dir / "tool.py").read_bytes() == source.read_bytes()


def test_reprocessing_is_byte_identical(processor, inbox):
    source = write(inbox / "paper.tex", "\\title{Stable}\n\\section{One}\n")

    first = processor.process(source).path.read_bytes()
    second = processor.process(source).path.read_bytes()

    assert first == second


def test_pdf_and_latex_with_same_stem_do_not_collide(processor, inbox, settings):
    write(inbox / "paper.pdf", b"%PDF-1.4\n")
    write(inbox / "paper.tex", "\\section{A}\n")

    pdf = processor.process(inbox / "paper.pdf")
    tex = processor.process(inbox / "paper.tex")

    assert pdf.filename == "paper_pdf.mdx"
    assert tex.filename == "paper_tex.mdx"
    assert '<iframe src="/static/inbox/paper.pdf"' in pdf.path.read_text(encoding="utf-8")


def test_malformed_notebook_writes_nothing(processor, inbox, settings):
    source = write(inbox / "broken.ipynb", "{ this is not json")

    with pytest.raises(ParseError):
        processor.process(source)

    assert not (settings.docs_output_dir / "broken_ipynb.mdx").exists()
    assert not (settings.asset_dir / "broken.ipynb").exists()


def test_vanished_file_is_read_error(processor, inbox):
    with pytest.raises(ReadError):
        processor.process(inbox / "gone.py")


def test_invalid_utf8_is_read_error(processor, inbox):
    source = write(inbox / "latin.txt", "caf\xe9".encode("latin-1"))
    with pytest.raises(ReadError, match="UTF-8"):
        processor.process(source)


def test_utf8_bom_is_accepted(processor, inbox):
    source = write(inbox / "bom.md", "\ufeff# Title\n".encode("utf-8"))
    text = processor.process(source).path.read_text(encoding="utf-8")
    assert 'title: "Title"' in text


def test_unsupported_type_raises(processor, inbox):
    source = write(inbox / "image.png", b"\x89PNG")
    with pytest.raises(UnsupportedTypeError):
        processor.process(source)


def test_explicit_output_root(processor, inbox, tmp_path):
    source = write(inbox / "notes.txt", "hello\n")
    location = processor.process(source, tmp_path / "elsewhere")
    assert location.path == (tmp_path / "elsewhere").resolve() / "notes_txt.mdx"
    assert location.path.exists()


def test_no_temporary_files_left_behind(processor, inbox, settings):
    processor.process(write(inbox / "a.txt", "a\n"))
    leftovers = [p.name for p in settings.docs_output_dir.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_process_file_safely_logs_instead_of_raising(processor, inbox, log_messages):
    write(inbox / "bad.ipynb", "[]")
    write(inbox / "photo.jpg", b"\xff\xd8")

    assert processor.process_file_safely(inbox / "bad.ipynb") is None
    assert processor.process_file_safely(inbox / "photo.jpg") is None

    assert ("ERROR", "Failed to process bad.ipynb: Invalid notebook: top level is not an object") in log_messages
    assert ("WARNING", "Unsupported file type: photo.jpg") in log_messages


def test_batch_counts_and_skips(processor, inbox, settings, log_messages):
    write(inbox / "python" / "ok.py", "x = 1\n")
    write(inbox / "notebooks" / "bad.ipynb", "not json")
    write(inbox / "other" / "data.csv", "a,b\n")
    write(inbox / ".hidden" / "secret.py", "x = 2\n")
    write(inbox / "__pycache__" / "cached.py", "x = 3\n")
    write(inbox / ".dotfile.md", "# hidden\n")

    result = processor.process_batch(inbox)

    assert (result.processed, result.failed, result.skipped) == (1, 1, 1)
    assert result.outputs == [settings.docs_output_dir.resolve() / "ok_py.mdx"]
    assert not (settings.docs_output_dir / "secret_py.mdx").exists()
    assert ("SUCCESS", "Processed 1 files (1 failed, 1 skipped)") in log_messages


def test_batch_on_missing_inbox(processor, tmp_path):
    result = processor.process_batch(tmp_path / "nowhere")
    assert result.processed == result.failed == result.skipped == 0


def test_batch_skips_generated_output_inside_inbox(settings, inbox):
    processor = InboxProcessor(settings=settings, output_dir=inbox / "site", asset_dir=inbox / "site" / "static")
    write(inbox / "readme.md", "# Readme\n")

    processor.process_batch(inbox)
    second = processor.process_batch(inbox)

    assert (second.processed, second.skipped) == (1, 0)


def test_iter_candidate_files_is_sorted_and_pruned(tmp_path):
    write(tmp_path / "b.py", "")
    write(tmp_path / "a" / "z.md", "")
    write(tmp_path / "node_modules" / "pkg.py", "")
    write(tmp_path / "a" / "tmp.swp", "")

    found = [p.relative_to(tmp_path).as_posix() for p in iter_candidate_files(tmp_path)]
    assert found == ["b.py", "a/z.md"]


def test_markdown_and_python_with_same_stem_get_separate_pages(processor, inbox):
    write(inbox / "notes.md", "# Notes\n")
    write(inbox / "notes.py", "x = 1\n")

    md = processor.process(inbox / "notes.md")
    py = processor.process(inbox / "notes.py")

    assert md.path != py.path
    assert 'title: "Notes"' in md.path.read_text(encoding="utf-8")
