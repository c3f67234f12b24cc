"""
Processing API router: document text or uploaded files in, expense records out.
"""

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from typing import List, Optional
import logging

from expense_engine.config import settings
from expense_engine.dependencies import get_assembler, get_text_extractor
from expense_engine.exceptions import ExpenseEngineError, NoDocumentsError
from expense_engine.models.expense import ProcessOptions, ProcessRequest, ProcessResponse
from expense_engine.services.assembler import ExpenseAssembler
from expense_engine.services.text_extraction import TextExtractionService

router = APIRouter(prefix="/process", tags=["process"])
logger = logging.getLogger(__name__)


def _parse_categories(raw: Optional[str]) -> List[str]:
    if not raw:
        return list(settings.DEFAULT_CATEGORIES)
    categories = [name.strip() for name in raw.split(',') if name.strip()]
    return categories or list(settings.DEFAULT_CATEGORIES)


@router.post("", response_model=ProcessResponse)
async def process_documents(
    request: ProcessRequest,
    assembler: ExpenseAssembler = Depends(get_assembler),
):
    """
    Extract expenses from documents whose text is already available.

    Returns:
        Records for every document, in document order
    """
    try:
        records = assembler.process_batch(request.documents, request)
        return ProcessResponse(data=records, errors=[])

    except NoDocumentsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExpenseEngineError as e:
        logger.error("Processing failed", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process documents: {str(e)}"
        )


@router.post("/upload", response_model=ProcessResponse)
async def process_uploads(
    files: Optional[List[UploadFile]] = File(None),
    province: str = Form(settings.DEFAULT_PROVINCE),
    occupation: Optional[str] = Form(None),
    categories: Optional[str] = Form(None),
    assembler: ExpenseAssembler = Depends(get_assembler),
    extractor: TextExtractionService = Depends(get_text_extractor),
):
    """
    Upload PDF statements, receipts or CSV exports and extract expenses.

    Each file is handled independently: a file that cannot be read is
    reported in `errors` and the rest of the batch still runs.

    Args:
        files: One or more PDF/CSV/text files
        province: Tax jurisdiction for HST/GST
        occupation: Optional context for the categorizer
        categories: Comma-separated category set

    Returns:
        Extracted records and per-file error messages
    """
    if not files:
        raise HTTPException(status_code=400, detail=str(NoDocumentsError()))

    options = ProcessOptions(
        province=province,
        occupation=occupation,
        categories=_parse_categories(categories),
    )

    records = []
    errors = []
    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024

    for upload in files:
        filename = upload.filename or "upload"
        file_data = await upload.read()

        if len(file_data) > max_bytes:
            file_size_mb = len(file_data) / (1024 * 1024)
            errors.append(
                f"{filename}: File too large: {file_size_mb:.2f}MB. Maximum: {settings.MAX_UPLOAD_MB}MB"
            )
            continue

        try:
            document = extractor.extract(file_data, filename, upload.content_type)
        except ExpenseEngineError as e:
            logger.warning("Skipping unreadable upload", extra={"upload_name": filename, "error": str(e)})
            errors.append(str(e))
            continue

        records.extend(assembler.process_document(document, options))

    logger.info("Processed uploads", extra={
        "files": len(files),
        "records": len(records),
        "errors": len(errors),
    })
    return ProcessResponse(data=records, errors=errors)
