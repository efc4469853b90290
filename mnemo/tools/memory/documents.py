"""Loading text and markdown documents from disk for ingestion."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """Parsed document text and the name it is shown under."""
    text: str
    display_name: str


def load_document(path: Union[str, Path]) -> Document:
    """
    Read a text or markdown file.

    Raises:
        FileNotFoundError: If the file does not exist
        UnicodeDecodeError: If the file is not valid UTF-8
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    return Document(text=text, display_name=path.name)


def iter_documents(directory: Union[str, Path], pattern: str = "*.md") -> Iterator[Document]:
    """
    Yield the non-empty documents matching ``pattern`` in a directory, sorted by name.

    Raises:
        NotADirectoryError: If ``directory`` is not a directory
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    for path in sorted(directory.glob(pattern)):
        if not path.is_file():
            continue
        document = load_document(path)
        if not document.text.strip():
            logger.info(f"Skipping empty document: {path.name}")
            continue
        yield document
