from abc import ABC, abstractmethod
from pathlib import Path
import hashlib
from typing import List

from ..document import ParsedDocument


class BaseParser(ABC):
    """Abstract base class for document parsers."""

    supported_extensions: List[str] = []

    @abstractmethod
    def parse(self, file_path: Path) -> ParsedDocument:
        """Parse a document from the given file path."""
        pass

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file."""
        return Path(file_path).suffix.lower() in self.supported_extensions

    @staticmethod
    def generate_document_id(file_path: Path) -> str:
        """Stable document ID derived from the file's absolute path."""
        return hashlib.md5(str(Path(file_path).resolve()).encode()).hexdigest()
