"""
Reference data: tax rates and the default category set.
"""

from fastapi import APIRouter

from expense_engine.config import settings
from expense_engine.utils.tax import DEFAULT_JURISDICTION, JURISDICTION_CODES, TAX_RATES

router = APIRouter(tags=["reference"])


@router.get("/tax-rates")
async def get_tax_rates():
    return {
        "rates": {name: float(rate) for name, rate in TAX_RATES.items()},
        "codes": dict(JURISDICTION_CODES),
        "default_province": DEFAULT_JURISDICTION,
        "default_categories": settings.DEFAULT_CATEGORIES,
    }
