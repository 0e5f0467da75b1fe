"""
Parser for plain text and Markdown files.

The content is passed through untouched; cleaning happens in the
normalisation stage. Text that already carries ``PAGE <n>`` markers (for
instance a PDF extracted elsewhere) is flagged so it is chunked per page.
"""

from pathlib import Path

from .base import BaseParser
from ..chunking.page_mapper import DEFAULT_PAGE_MARKER
from ..document import ParsedDocument
from ...utils.logger import get_logger

logger = get_logger(__name__)

# latin-1 maps every byte, so decoding always ends there
ENCODINGS = ("utf-8", "utf-8-sig", "latin-1")


def decode_text(data: bytes) -> str:
    """Decode raw bytes, trying UTF-8 before falling back to latin-1."""
    for encoding in ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UnicodeDecodeError("utf-8", data, 0, len(data), "no supported encoding matched")


class TextParser(BaseParser):
    """Parser for plain text (.txt) and Markdown (.md) files."""

    supported_extensions = [".txt", ".md"]

    def parse(self, file_path: Path) -> ParsedDocument:
        """
        Parse a text or Markdown file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        content = decode_text(file_path.read_bytes())
        logger.info("Parsed text file: %s (%d chars)", file_path.name, len(content))
        return self._build(content, file_path)

    def parse_bytes(self, data: bytes, name: str = "document.txt") -> ParsedDocument:
        """Parse an in-memory text upload named ``name``."""
        return self._build(decode_text(data), Path(name))

    def _build(self, content: str, path: Path) -> ParsedDocument:
        return ParsedDocument(
            document_id=self.generate_document_id(path),
            title=path.stem,
            text=content,
            source_path=path,
            file_type=path.suffix.lower().lstrip(".") or "txt",
            has_page_markers=DEFAULT_PAGE_MARKER.search(content) is not None,
        )
