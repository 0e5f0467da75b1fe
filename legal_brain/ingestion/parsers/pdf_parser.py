from pathlib import Path
from typing import List, Optional

import pymupdf

from .base import BaseParser
from ..document import ParsedDocument
from ...utils.logger import get_logger

logger = get_logger(__name__)

PDF_MAGIC = b"%PDF"


def is_pdf(data: bytes) -> bool:
    """Check the PDF magic bytes."""
    return data[:4] == PDF_MAGIC


def join_pages(pages: List[str]) -> str:
    """Join page texts, prefixing each with a ``PAGE <n>`` marker line."""
    return "\n\n".join(
        f"PAGE {number}\n{text.strip()}" for number, text in enumerate(pages, start=1)
    )


class PDFParser(BaseParser):
    """Parser for PDF documents.

    Each page's text is emitted under its own ``PAGE <n>`` marker so the
    chunking stage can attribute chunks to pages.
    """

    supported_extensions = [".pdf"]

    def parse(self, file_path: Path) -> ParsedDocument:
        """Parse a PDF file."""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        with pymupdf.open(file_path) as pdf_doc:
            pages = [page.get_text() for page in pdf_doc]
            author, title = self._read_metadata(pdf_doc.metadata)

        logger.info("Parsed PDF: %s (%d pages)", file_path.name, len(pages))
        return ParsedDocument(
            document_id=self.generate_document_id(file_path),
            title=title or file_path.stem,
            text=join_pages(pages),
            source_path=file_path,
            file_type="pdf",
            author=author,
            page_count=len(pages),
            has_page_markers=True,
        )

    def parse_bytes(self, data: bytes, name: str = "document.pdf") -> ParsedDocument:
        """Parse an in-memory PDF, e.g. an upload.

        Raises:
            ValueError: If ``data`` is not a PDF.
        """
        if not is_pdf(data):
            raise ValueError(f"{name} is not a PDF")

        with pymupdf.open(stream=data, filetype="pdf") as pdf_doc:
            pages = [page.get_text() for page in pdf_doc]
            author, title = self._read_metadata(pdf_doc.metadata)

        path = Path(name)
        return ParsedDocument(
            document_id=self.generate_document_id(path),
            title=title or path.stem,
            text=join_pages(pages),
            source_path=path,
            file_type="pdf",
            author=author,
            page_count=len(pages),
            has_page_markers=True,
        )

    @staticmethod
    def _read_metadata(pdf_metadata: Optional[dict]):
        if not pdf_metadata:
            return None, None
        author = pdf_metadata.get('author') or None
        title = pdf_metadata.get('title')
        if not title or not title.strip():
            title = None
        return author, title
