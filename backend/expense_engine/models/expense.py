"""
Pydantic models for extracted expenses and API payloads.
"""

from pydantic import BaseModel, Field, field_serializer, model_validator
from typing import List, Optional
from decimal import Decimal

from expense_engine.config import settings


class ExpenseRecord(BaseModel):
    """Canonical extracted expense."""
    date: str
    paid_by: str
    description: str
    category: str
    amount: Decimal
    tax: Decimal = Decimal('0')
    net: Decimal = Decimal('0')
    needs_review: bool = False

    class Config:
        from_attributes = True

    @field_serializer('amount', 'tax', 'net')
    def _money_as_number(self, value: Decimal) -> float:
        return float(value)


class DocumentInput(BaseModel):
    """A document whose text has already been obtained."""
    text: str = ""
    filename: Optional[str] = None
    source_type: Optional[str] = None  # "pdf", "csv" or "text"

    @property
    def is_csv(self) -> bool:
        if self.source_type:
            return self.source_type.lower() == 'csv'
        return bool(self.filename) and self.filename.lower().endswith('.csv')


class ProcessOptions(BaseModel):
    """Per-request extraction options."""
    province: str = settings.DEFAULT_PROVINCE
    occupation: Optional[str] = None
    categories: List[str] = Field(default_factory=lambda: list(settings.DEFAULT_CATEGORIES))


class ProcessRequest(ProcessOptions):
    """Model for the JSON processing endpoint."""
    documents: List[DocumentInput] = Field(default_factory=list)


class ProcessResponse(BaseModel):
    """Extracted records plus per-document error messages."""
    data: List[ExpenseRecord]
    errors: List[str] = Field(default_factory=list)


class MileageInfo(BaseModel):
    """Vehicle distance log; work_percentage is derived when omitted."""
    total_kms: Decimal = Decimal('0')
    work_kms: Decimal = Decimal('0')
    work_percentage: Optional[Decimal] = None

    @model_validator(mode='after')
    def _derive_work_percentage(self):
        if self.work_percentage is None:
            if self.total_kms > 0:
                self.work_percentage = self.work_kms / self.total_kms * 100
            else:
                self.work_percentage = Decimal('0')
        return self


class ExportRequest(BaseModel):
    """Model for CSV export."""
    expenses: List[ExpenseRecord]
    mileage: Optional[MileageInfo] = None
