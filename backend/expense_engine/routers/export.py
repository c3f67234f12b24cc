"""
Export API router for generating the accounting CSV.
"""

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from datetime import date

from expense_engine.models.expense import ExportRequest
from expense_engine.utils.csv_export import generate_csv

router = APIRouter(prefix="/export", tags=["export"])


@router.post("/csv")
async def export_csv(request: ExportRequest):
    """
    Export expense records as a CSV file.

    Includes the summary, per-category totals and, when mileage is given,
    the mileage block.

    Returns:
        CSV file download
    """
    content = generate_csv(request.expenses, request.mileage)
    filename = f"expenses-{date.today().isoformat()}.csv"

    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}"
        }
    )
