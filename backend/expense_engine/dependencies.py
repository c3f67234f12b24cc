"""
FastAPI dependencies for the extraction services.
"""

from functools import lru_cache

from fastapi import Depends

from expense_engine.services.assembler import ExpenseAssembler
from expense_engine.services.categorizer import CategoryClassifier, build_classifier
from expense_engine.services.text_extraction import TextExtractionService


@lru_cache()
def get_classifier() -> CategoryClassifier:
    return build_classifier()


def get_assembler(classifier: CategoryClassifier = Depends(get_classifier)) -> ExpenseAssembler:
    return ExpenseAssembler(classifier=classifier)


def get_text_extractor() -> TextExtractionService:
    return TextExtractionService()
