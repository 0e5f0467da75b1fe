from pathlib import Path
from typing import List, Optional

from .parsers.base import BaseParser
from .parsers.pdf_parser import PDFParser, is_pdf
from .parsers.text_parser import TextParser
from .document import ParsedDocument
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DocumentManager:
    """Routes files and uploads to the parser that handles them."""

    def __init__(self):
        self.pdf_parser = PDFParser()
        self.text_parser = TextParser()
        self.parsers: List[BaseParser] = [self.pdf_parser, self.text_parser]

    def get_parser(self, file_path: Path) -> Optional[BaseParser]:
        """Find the parser for a file's extension."""
        for parser in self.parsers:
            if parser.can_parse(file_path):
                return parser
        return None

    @property
    def supported_extensions(self) -> List[str]:
        return [ext for parser in self.parsers for ext in parser.supported_extensions]

    def parse_document(self, file_path: Path) -> ParsedDocument:
        """Parse a single document.

        Raises:
            ValueError: If no parser handles the file's extension.
        """
        file_path = Path(file_path)
        parser = self.get_parser(file_path)
        if parser is None:
            raise ValueError(f"Unsupported document type: {file_path.suffix or file_path.name}")
        return parser.parse(file_path)

    def parse_upload(self, data: bytes, name: str) -> ParsedDocument:
        """Parse an uploaded document held in memory.

        PDFs are recognised by their magic bytes whatever the name says;
        anything else must carry a text or Markdown extension.

        Raises:
            ValueError: If the upload is neither a PDF nor a text file.
        """
        if is_pdf(data):
            parsed = self.pdf_parser.parse_bytes(data, name)
        elif self.text_parser.can_parse(Path(name)):
            parsed = self.text_parser.parse_bytes(data, name)
        else:
            raise ValueError(f"Unsupported upload: {name}")

        logger.info("Parsed upload %s as %s", name, parsed.file_type)
        return parsed

    def find_documents(self, directory: Path) -> List[Path]:
        """List every supported file under ``directory``, sorted."""
        return sorted(
            path for path in Path(directory).rglob("*")
            if path.is_file() and self.get_parser(path) is not None
        )
