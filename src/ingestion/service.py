import io
import logging
from typing import List

from langchain_community.document_loaders.parsers.pdf import PyPDFParser
from langchain_core.document_loaders import Blob
from docx import Document as DocxDocument

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".pdf", ".docx")


class IngestionService:
    def __init__(self):
        self.pdf_parser = PyPDFParser()

    def is_supported(self, filename: str) -> bool:
        return (filename or "").lower().endswith(SUPPORTED_EXTENSIONS)

    def extract_text(self, file_content: bytes, filename: str) -> str:
        """
        Extracts full text from an uploaded report.
        Supports PDF, DOCX, and UTF-8 plain text.
        """
        lower = (filename or "").lower()
        if lower.endswith('.pdf'):
            return "\n".join(self.extract_pages(file_content))
        elif lower.endswith('.docx'):
            return self._extract_docx_text(file_content)
        elif lower.endswith('.txt'):
            try:
                return file_content.decode('utf-8')
            except UnicodeDecodeError:
                raise ValueError("Text files must be UTF-8 encoded")
        raise ValueError(
            f"Unsupported file type; expected one of {', '.join(SUPPORTED_EXTENSIONS)}"
        )

    def extract_pages(self, file_content: bytes) -> List[str]:
        """Extract PDF text page-by-page, skipping pages with no text."""
        blob = Blob.from_data(file_content, mime_type="application/pdf")
        try:
            documents = list(self.pdf_parser.lazy_parse(blob))
        except Exception as e:
            logger.warning("PDF parsing failed: %s", e)
            raise ValueError("Could not read PDF file") from e
        return [doc.page_content for doc in documents if (doc.page_content or "").strip()]

    def _extract_docx_text(self, file_content: bytes) -> str:
        """Extract paragraph text from a DOCX file using python-docx."""
        try:
            doc = DocxDocument(io.BytesIO(file_content))
        except Exception as e:
            logger.warning("DOCX parsing failed: %s", e)
            raise ValueError("Could not read DOCX file") from e
        return "\n".join(p.text for p in doc.paragraphs if p.text.strip())
