"""
Expense categorization backends.

Both backends satisfy the same capability:

    classify(description, occupation, categories) -> Classification

RuleBasedClassifier is pure and dependency-free. ChatCompletionClassifier asks
a chat-completions endpoint and degrades to the rules when the call fails.
"""

import logging
from typing import List, NamedTuple, Optional, Protocol, Sequence, Tuple

import requests

from expense_engine.config import settings
from expense_engine.services.category_rules import (
    DEFAULT_RULES,
    CSV_CATEGORY_RULES,
    KeywordRule,
    match_rules,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = 'Uncategorized'


class Classification(NamedTuple):
    category: str
    is_unsure: bool


class CategoryClassifier(Protocol):
    def classify(
        self,
        description: str,
        occupation: Optional[str],
        categories: Sequence[str],
    ) -> Classification:
        ...


def fallback_category(categories: Sequence[str]) -> str:
    """First entry of the category set, or Uncategorized for an empty set."""
    return categories[0] if categories else UNCATEGORIZED


class RuleBasedClassifier:
    """Deterministic keyword classifier."""

    def __init__(self, rules: Tuple[KeywordRule, ...] = DEFAULT_RULES):
        self.rules = rules

    def classify(
        self,
        description: str,
        occupation: Optional[str] = None,
        categories: Sequence[str] = (),
    ) -> Classification:
        """
        Map a description to a category.

        1. First fixed keyword rule that matches (confident).
        2. A category name appearing in the description (unsure).
        3. The first category in the set (unsure).

        occupation is accepted for interface parity and does not change the
        outcome.
        """
        lowered = (description or '').lower()

        category = match_rules(lowered, self.rules)
        if category:
            return Classification(category, False)

        for name in categories:
            if name and name.lower() in lowered:
                return Classification(name, True)

        return Classification(fallback_category(categories), True)


def map_csv_category(raw_category: Optional[str]) -> Optional[str]:
    """
    Translate a category cell from a bank export into a GL account.

    Returns None when the cell does not map to a known account.
    """
    if not raw_category:
        return None
    return match_rules(raw_category.lower(), CSV_CATEGORY_RULES)


class ChatCompletionClassifier:
    """
    Classifier backed by an OpenAI-compatible chat-completions endpoint.

    A reply containing "UNSURE" marks the result unsure. A reply naming no
    category from the set falls back to the first category, unsure.
    """

    SYSTEM_PROMPT = (
        "You are a financial expense categorizer with knowledge of Canadian tax "
        "principles, finances, and business expenditures. "
        "The user's occupation is: {occupation}. "
        "Categorize expenses into: {categories}. "
        "Reply with the category name only. "
        "Always provide the most likely category, and append UNSURE if you are not confident."
    )

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        fallback: Optional[CategoryClassifier] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url or settings.LLM_API_URL
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.model = model or settings.LLM_MODEL
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS
        self.fallback = fallback or RuleBasedClassifier()
        self.session = session or requests.Session()

    def _build_payload(self, description: str, occupation: Optional[str], categories: Sequence[str]) -> dict:
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": self.SYSTEM_PROMPT.format(
                        occupation=occupation or 'unknown',
                        categories=', '.join(categories),
                    ),
                },
                {"role": "user", "content": f"Categorize this expense: {description}"},
            ],
        }

    def _interpret(self, reply: str, categories: Sequence[str]) -> Classification:
        is_unsure = 'UNSURE' in reply
        answer = reply.replace('UNSURE', '').strip().strip('."\'').strip()

        for name in categories:
            if name.lower() == answer.lower():
                return Classification(name, is_unsure)

        # Model answered with extra words; accept a category it mentions
        lowered = answer.lower()
        mentioned: List[str] = [name for name in categories if name.lower() in lowered]
        if len(mentioned) == 1:
            return Classification(mentioned[0], True)

        return Classification(fallback_category(categories), True)

    def classify(
        self,
        description: str,
        occupation: Optional[str] = None,
        categories: Sequence[str] = (),
    ) -> Classification:
        try:
            response = self.session.post(
                self.api_url,
                json=self._build_payload(description, occupation, categories),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            reply = response.json()["choices"][0]["message"].get("content") or ""
        except (requests.RequestException, KeyError, IndexError, TypeError, ValueError):
            logger.warning("Chat categorization failed, using keyword rules", exc_info=True)
            return self.fallback.classify(description, occupation, categories)

        result = self._interpret(reply, categories)
        logger.debug("Chat categorization", extra={
            "description": description,
            "category": result.category,
            "is_unsure": result.is_unsure,
        })
        return result


def build_classifier(backend: Optional[str] = None) -> CategoryClassifier:
    """Select the categorization backend named in configuration."""
    backend = (backend or settings.CLASSIFIER_BACKEND).lower()

    if backend == 'llm':
        if not settings.LLM_API_KEY:
            logger.warning("CLASSIFIER_BACKEND=llm but LLM_API_KEY is empty, using keyword rules")
            return RuleBasedClassifier()
        return ChatCompletionClassifier()

    if backend != 'rules':
        logger.warning("Unknown CLASSIFIER_BACKEND %r, using keyword rules", backend)
    return RuleBasedClassifier()
