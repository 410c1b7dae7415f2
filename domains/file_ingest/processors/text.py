"""Plain text extractor."""

from __future__ import annotations

from inboxdocs.models.schemas import DocumentSummary, InputFile, SupportedType
from inboxdocs.utils.helpers import count_lines, count_words

from .base import Extractor


class TextExtractor(Extractor):
    """Plain text: line and word counts plus the text itself."""

    file_type = SupportedType.TEXT
    extensions = (".txt",)
    output_suffix = "_txt"
    format_label = "Text File"
    tags = ("text",)

    def extract(self, input_file: InputFile) -> DocumentSummary:
        content = self.text_of(input_file)
        return self.base_summary(
            input_file,
            stats={
                "Lines": count_lines(content),
                "Words": count_words(content),
            },
            fragments=[
                self.source_fragment(content, "text", input_file.filename, heading="Contents", line_numbers=False),
            ],
            show_raw_link=False,
        )
