from domains.file_ingest.processors.code import PythonExtractor
from domains.file_ingest.processors.renderer import escape_mdx, inline_code, render
from inboxdocs.models.schemas import BodyFragment, DocumentSummary, FragmentKind, ReferenceEntry
from inboxdocs.utils.helpers import code_fence


def summary(**fields) -> DocumentSummary:
    fields.setdefault("title", "example")
    fields.setdefault("sidebar_label", "example.py")
    return DocumentSummary(**fields)


def test_frontmatter_format():
    document = render(summary(
        title='Say "hi"',
        format_label="Python Module",
        tags=["python", "module"],
        extras={"author": "Ada"},
    ))
    text = document.text()

    assert text.startswith(
        "---\n"
        'title: "Say \\"hi\\" - Python Module"\n'
        'sidebar_label: "example.py"\n'
        'tags: ["python", "module"]\n'
        'author: "Ada"\n'
        "---\n\n"
        "# Say \"hi\"\n"
    )


def test_title_without_format_label():
    document = render(summary(title="Notes"))
    assert document.frontmatter[0] == ("title", "Notes")
    assert ("tags", []) not in document.frontmatter


def test_render_is_pure():
    first = summary(
        stats={"Lines": 3},
        fragments=[BodyFragment(kind=FragmentKind.DESCRIPTION, heading="Description", text="Hi.")],
    )
    second = DocumentSummary(**first.model_dump())
    assert render(first).text() == render(second).text()


def test_empty_fragments_are_omitted():
    document = render(summary(
        fragments=[
            BodyFragment(kind=FragmentKind.DESCRIPTION, heading="Description", text="  "),
            BodyFragment(kind=FragmentKind.DEPENDENCIES, heading="Dependencies", language="python"),
            BodyFragment(kind=FragmentKind.LISTING, heading="Definitions"),
        ],
    ))
    assert document.body == "# example\n"


def test_fragments_follow_fixed_order():
    document = render(summary(
        stats={"Lines": 2},
        fragments=[
            BodyFragment(kind=FragmentKind.SOURCE, heading="Source Code", text="x = 1", language="python"),
            BodyFragment(kind=FragmentKind.LISTING, heading="Definitions", items=["def `f()`"]),
            BodyFragment(kind=FragmentKind.DESCRIPTION, heading="Description", text="About."),
        ],
    ))
    body = document.body

    assert body.index("| Lines |") < body.index("## Description")
    assert body.index("## Description") < body.index("## Definitions")
    assert body.index("## Definitions") < body.index("## Source Code")


def test_stats_panel_is_one_row_table():
    body = render(summary(stats={"Lines": 40, "Classes": 1})).body
    assert "| Lines | Classes |\n| --- | --- |\n| 40 | 1 |" in body


def test_asset_links_and_preview_need_asset_url():
    fragments = [BodyFragment(kind=FragmentKind.PREVIEW, heading="PDF Preview", text="Note.", height="900px")]
    without = render(summary(fragments=fragments)).body
    assert "<iframe" not in without
    assert "Download" not in without

    with_url = render(summary(
        fragments=fragments,
        filename="paper.pdf",
        asset_url="/static/inbox/paper.pdf",
        download_label="Download PDF",
    )).body
    assert '<a href="/static/inbox/paper.pdf" download="paper.pdf">Download PDF</a>' in with_url
    assert "View Raw" in with_url
    assert ":::tip\nNote.\n:::" in with_url
    assert 'height="900px"' in with_url


def test_escape_mdx_leaves_code_spans_alone():
    assert escape_mdx("use {x} and <b> but `{keep}`") == "use \\{x\\} and &lt;b&gt; but `{keep}`"


def test_code_fence_outgrows_backtick_runs():
    fenced = code_fence("text with ``` inside", "markdown")
    assert fenced.startswith("````markdown\n")
    assert fenced.endswith("\n````")


def test_python_summary_renders_source_block(make_input):
    extracted = PythonExtractor().extract(make_input("tool.py", "def run():\n    return '{}'\n"))
    body = render(extracted).body

    assert '```python title="tool.py" showLineNumbers\n' in body
    assert "return '{}'" in body
    assert "## API Reference\n\n### `run()`" in body


def test_reference_entries_render_as_subheadings():
    body = render(summary(fragments=[
        BodyFragment(
            kind=FragmentKind.REFERENCE,
            heading="API Reference",
            entries=[
                ReferenceEntry(signature="class Cache(Base)", doc="Holds <items>."),
                ReferenceEntry(signature="get(key) -> Optional[str]"),
            ],
        ),
    ])).body

    assert body.endswith(
        "## API Reference\n\n"
        "### `class Cache(Base)`\n\n"
        "Holds &lt;items&gt;.\n\n"
        "### `get(key) -> Optional[str]`\n"
    )


def test_empty_reference_is_omitted():
    body = render(summary(fragments=[BodyFragment(kind=FragmentKind.REFERENCE, heading="API Reference")])).body
    assert body == "# example\n"


def test_inline_code_with_backticks():
    assert inline_code("a`b") == "`` a`b ``"
