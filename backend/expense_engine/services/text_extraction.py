"""
Text extraction for uploaded documents.

PDFs are read with PyPDF2 (text layer only). CSV and plain-text uploads are
decoded as UTF-8, falling back to Latin-1 for legacy bank exports.
"""

import io
import logging
from typing import Optional

import PyPDF2
from PyPDF2.errors import PyPdfError

from expense_engine.exceptions import TextExtractionError, UnsupportedDocumentError
from expense_engine.models.expense import DocumentInput

logger = logging.getLogger(__name__)

PDF_TYPES = ("application/pdf",)
TEXT_TYPES = (
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
)


class TextExtractionService:
    """Service for turning uploaded bytes into DocumentInput."""

    def detect_source_type(self, filename: Optional[str], mime_type: Optional[str]) -> str:
        """
        Classify an upload as "pdf", "csv" or "text".

        Raises:
            UnsupportedDocumentError: For any other file type
        """
        name = (filename or "").lower()
        mime = (mime_type or "").lower()

        if mime in PDF_TYPES or name.endswith(".pdf"):
            return "pdf"
        if name.endswith(".csv") or mime in ("text/csv", "application/csv"):
            return "csv"
        if mime in TEXT_TYPES or name.endswith(".txt"):
            return "text"

        raise UnsupportedDocumentError(filename or "upload", mime_type or "unknown")

    def extract_text_from_pdf(self, pdf_data: bytes, filename: str = "document.pdf") -> str:
        """
        Extract the text layer of a PDF, one page per block.

        Args:
            pdf_data: Raw PDF bytes
            filename: Used in error messages

        Returns:
            Extracted text

        Raises:
            TextExtractionError: If the PDF cannot be read or has no text layer
        """
        try:
            pdf_reader = PyPDF2.PdfReader(io.BytesIO(pdf_data))

            text = ""
            for page in pdf_reader.pages:
                text += (page.extract_text() or "") + "\n"

        except (PyPdfError, ValueError, KeyError, TypeError) as e:
            logger.warning("PDF text extraction failed", extra={"document": filename}, exc_info=True)
            raise TextExtractionError(filename, str(e)) from e

        if not text.strip():
            raise TextExtractionError(filename, "no text layer found")

        logger.debug("Extracted PDF text", extra={
            "document": filename,
            "pages": len(pdf_reader.pages),
            "chars": len(text),
        })
        return text

    def decode_text(self, data: bytes, filename: str = "document.csv") -> str:
        if not data:
            raise TextExtractionError(filename, "file is empty")

        for encoding in ("utf-8-sig", "latin-1"):
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                continue

        raise TextExtractionError(filename, "could not decode file")

    def extract(self, data: bytes, filename: Optional[str], mime_type: Optional[str]) -> DocumentInput:
        """
        Build a DocumentInput from an upload.

        Raises:
            UnsupportedDocumentError: If the file is neither PDF nor CSV/text
            TextExtractionError: If no text could be obtained
        """
        source_type = self.detect_source_type(filename, mime_type)
        name = filename or f"upload.{source_type}"

        if source_type == "pdf":
            text = self.extract_text_from_pdf(data, name)
        else:
            text = self.decode_text(data, name)

        return DocumentInput(text=text, filename=name, source_type=source_type)
