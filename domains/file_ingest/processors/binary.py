"""Opaque formats that are embedded rather than parsed (PDF)."""

from __future__ import annotations

from inboxdocs.models.schemas import DocumentSummary, InputFile, SupportedType

from .base import Extractor


class PdfExtractor(Extractor):
    """PDF documents: size stats and an embedded viewer, nothing structural."""

    file_type = SupportedType.PDF
    extensions = (".pdf",)
    format_label = "PDF"
    tags = ("pdf", "document")
    binary = True
    output_suffix = "_pdf"

    def extract(self, input_file: InputFile) -> DocumentSummary:
        size = len(input_file.content)
        return self.base_summary(
            input_file,
            sidebar_label=f"{input_file.stem} (PDF)",
            stats={
                "Bytes": size,
                "Size (KB)": round(size / 1024),
            },
            fragments=[
                self.preview_fragment(
                    heading="PDF Preview",
                    note="If the preview doesn't load, open the file in a new tab.",
                    height="900px",
                ),
            ],
            download_label="Download PDF",
        )
