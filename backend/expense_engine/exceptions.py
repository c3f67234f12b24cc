"""
Exceptions raised at the edges of the extraction engine.

Ambiguous dates, bad amounts and unknown categories are never errors; only
conditions the caller must act on are represented here.
"""


class ExpenseEngineError(Exception):
    """Base class for engine errors."""


class TextExtractionError(ExpenseEngineError):
    """No text could be obtained from a document."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Failed to extract text from {filename}: {reason}")


class UnsupportedDocumentError(ExpenseEngineError):
    """The document type is neither PDF nor CSV/plain text."""

    def __init__(self, filename: str, mime_type: str):
        self.filename = filename
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}. Please upload PDF or CSV files.")


class NoDocumentsError(ExpenseEngineError):
    """A batch was submitted with zero documents."""

    def __init__(self):
        super().__init__("No files received")
