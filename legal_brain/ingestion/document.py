from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class ParsedDocument:
    """Text extracted from a source file, ready for ingestion."""
    document_id: str
    title: str
    text: str
    source_path: Path
    file_type: str
    author: Optional[str] = None
    page_count: Optional[int] = None

    # True when ``text`` carries one ``PAGE <n>`` marker per page
    has_page_markers: bool = False

    def __len__(self):
        return len(self.text)
