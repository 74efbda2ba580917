"""
Knowledge base document loading.

Turns files into Document(text, metadata) items for the chunker. The
retrieval engine itself never opens files; this module is what the
seed-kb command feeds into build_index().
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import PyPDF2
from docx import Document as DocxFile

from kb_retrieval.chunking import Document
from kb_retrieval.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt", ".md")


class DocumentLoader:
    """
    Load documents from various file formats.

    Every Document carries "source" and "file_name" metadata (the file
    name); PDF pages also carry a 1-based "page".
    """

    @staticmethod
    def load(file_path: Union[str, Path]) -> List[Document]:
        """
        Load a file and return its documents.

        Raises:
            FileNotFoundError: the file does not exist
            ValueError: the extension is not supported
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        suffix = path.suffix.lower()

        if suffix in (".txt", ".md"):
            return DocumentLoader._load_txt(path)
        elif suffix == ".pdf":
            return DocumentLoader._load_pdf(path)
        elif suffix == ".docx":
            return DocumentLoader._load_docx(path)
        else:
            raise ValueError(f"Unsupported file format: {suffix}")

    @staticmethod
    def _metadata(path: Path) -> dict:
        return {"source": path.name, "file_name": path.name}

    @staticmethod
    def _load_txt(path: Path) -> List[Document]:
        """Load a text or markdown file."""
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        return [Document(text, DocumentLoader._metadata(path))]

    @staticmethod
    def _load_pdf(path: Path) -> List[Document]:
        """Load a PDF file, one document per page."""
        documents = []

        with open(path, "rb") as f:
            reader = PyPDF2.PdfReader(f)
            for page_number, page in enumerate(reader.pages, start=1):
                metadata = DocumentLoader._metadata(path)
                metadata["page"] = page_number
                documents.append(Document(page.extract_text() or "", metadata))

        return documents

    @staticmethod
    def _load_docx(path: Path) -> List[Document]:
        """Load a Word document as a single document (one paragraph per line)."""
        docx_file = DocxFile(str(path))
        text = "\n".join(paragraph.text for paragraph in docx_file.paragraphs)
        return [Document(text, DocumentLoader._metadata(path))]


def load_knowledge_base(
    kb_dir: Union[str, Path],
    file_names: Optional[Sequence[str]] = None
) -> List[Document]:
    """
    Load the knowledge base directory.

    Args:
        kb_dir: Directory holding the knowledge base files
        file_names: Files to load (defaults to every supported file)

    Missing, unsupported, or unreadable files are logged and skipped.
    """
    directory = Path(kb_dir)
    logger.info("Loading KB documents from: %s", directory)

    if file_names is None:
        if not directory.is_dir():
            logger.warning("KB directory not found: %s", directory)
            return []
        file_names = sorted(
            p.name for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
        )

    documents: List[Document] = []
    for name in file_names:
        path = directory / name
        if not path.exists():
            logger.warning("File not found: %s", path)
            continue

        try:
            loaded = DocumentLoader.load(path)
        except ValueError as e:
            logger.warning("Skipping %s: %s", name, e)
            continue
        except Exception as e:
            logger.error("Error loading %s: %s", name, e)
            continue

        documents.extend(loaded)
        logger.info("Loaded %d documents from %s", len(loaded), name)

    logger.info("Total documents loaded: %d", len(documents))
    return documents
