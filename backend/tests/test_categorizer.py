"""
Tests for keyword and chat-completion categorization.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from unittest.mock import MagicMock, patch
import pytest
import requests

from expense_engine.config import settings
from expense_engine.services.categorizer import (
    ChatCompletionClassifier,
    Classification,
    RuleBasedClassifier,
    UNCATEGORIZED,
    build_classifier,
    map_csv_category,
)
from expense_engine.services.category_rules import DEFAULT_RULES, KeywordRule, match_rules

DEFAULT_CATEGORIES = list(settings.DEFAULT_CATEGORIES)


class TestKeywordRules:

    def test_rules_are_ordered(self):
        # "car wash" is listed under Gas before Car Cleaning
        assert match_rules("shell car wash", DEFAULT_RULES) == 'Gas'
        assert match_rules("auto spa detailing", DEFAULT_RULES) == 'Car Cleaning'

    def test_case_insensitive_substring(self):
        rule = KeywordRule(category='Food', keywords=('tim hortons',))
        assert rule.matches("TIM HORTONS #1234")
        assert not rule.matches("")

    def test_parking_text_hits_entertainment_park_keyword(self):
        assert match_rules("Parking downtown lot", DEFAULT_RULES) == 'Entertainment'
        result = RuleBasedClassifier().classify("Parking downtown lot", None, DEFAULT_CATEGORIES)
        assert result == Classification('Entertainment', False)

    def test_no_match(self):
        assert match_rules("qwerty zzz", DEFAULT_RULES) is None


class TestRuleBasedClassifier:

    @pytest.mark.parametrize("description,expected", [
        ("UBER *TRIP", "Gas"),
        ("TIM HORTONS #1234", "Food"),
        ("STAPLES STORE 42", "Office"),
        ("ROGERS WIRELESS", "Telephone"),
        ("CITY OF TORONTO METER", "Parking"),
    ])
    def test_fixed_rules_are_confident(self, description, expected):
        result = RuleBasedClassifier().classify(description, None, DEFAULT_CATEGORIES)
        assert result == Classification(expected, False)

    def test_fixed_rule_applies_regardless_of_category_set(self):
        result = RuleBasedClassifier().classify("uber", None, ["Personal"])
        assert result.category == "Gas"
        assert result.is_unsure is False

    def test_no_match_falls_back_to_first_category(self):
        result = RuleBasedClassifier().classify("Qwerty Zzz", None, ["Personal", "Food"])
        assert result == Classification("Personal", True)

    def test_category_name_in_description(self):
        result = RuleBasedClassifier().classify("Qwerty widgets order", None, ["Personal", "Widgets"])
        assert result == Classification("Widgets", True)

    def test_empty_category_set(self):
        result = RuleBasedClassifier().classify("Qwerty Zzz", None, [])
        assert result == Classification(UNCATEGORIZED, True)

    def test_occupation_does_not_change_outcome(self):
        classifier = RuleBasedClassifier()
        assert classifier.classify("uber", "Realtor", DEFAULT_CATEGORIES) == \
            classifier.classify("uber", None, DEFAULT_CATEGORIES)


class TestCsvCategoryMapping:

    def test_known_bank_categories(self):
        assert map_csv_category("Transportation") == "Gas"
        assert map_csv_category("Restaurants") == "Food"
        assert map_csv_category("Office Supplies") == "Office"
        assert map_csv_category("Medical") == "Health"
        assert map_csv_category("Personal") == "Personal"

    def test_unknown_or_empty(self):
        assert map_csv_category("Misc") is None
        assert map_csv_category("") is None
        assert map_csv_category(None) is None


def _chat_session(content):
    session = MagicMock()
    session.post.return_value.json.return_value = {
        "choices": [{"message": {"content": content}}]
    }
    return session


class TestChatCompletionClassifier:

    def _classifier(self, session):
        return ChatCompletionClassifier(
            api_url="https://llm.example/v1/chat/completions",
            api_key="sk-test",
            model="test-model",
            timeout=5,
            session=session,
        )

    def test_exact_category_reply(self):
        classifier = self._classifier(_chat_session("Food"))
        assert classifier.classify("Lunch meeting", "Realtor", DEFAULT_CATEGORIES) == \
            Classification("Food", False)

    def test_unsure_marker(self):
        classifier = self._classifier(_chat_session("Office UNSURE"))
        assert classifier.classify("Thing", None, DEFAULT_CATEGORIES) == Classification("Office", True)

    def test_reply_outside_category_set_falls_back(self):
        classifier = self._classifier(_chat_session("Groceries"))
        assert classifier.classify("Thing", None, DEFAULT_CATEGORIES) == Classification("Personal", True)

    def test_request_payload(self):
        session = _chat_session("Food")
        self._classifier(session).classify("Lunch meeting", "Realtor", ["Food", "Gas"])

        _, kwargs = session.post.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["json"]["model"] == "test-model"
        assert "Realtor" in kwargs["json"]["messages"][0]["content"]
        assert "Food, Gas" in kwargs["json"]["messages"][0]["content"]
        assert kwargs["json"]["messages"][1]["content"] == "Categorize this expense: Lunch meeting"

    def test_network_failure_uses_keyword_rules(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("boom")
        result = self._classifier(session).classify("UBER TRIP", None, DEFAULT_CATEGORIES)
        assert result == Classification("Gas", False)

    def test_malformed_reply_uses_keyword_rules(self):
        session = MagicMock()
        session.post.return_value.json.return_value = {"choices": []}
        result = self._classifier(session).classify("Qwerty", None, ["Personal"])
        assert result == Classification("Personal", True)


class TestBuildClassifier:

    def test_rules_backend(self):
        assert isinstance(build_classifier("rules"), RuleBasedClassifier)

    def test_llm_without_key_uses_rules(self):
        with patch.object(settings, "LLM_API_KEY", ""):
            assert isinstance(build_classifier("llm"), RuleBasedClassifier)

    def test_llm_with_key(self):
        with patch.object(settings, "LLM_API_KEY", "sk-test"):
            assert isinstance(build_classifier("llm"), ChatCompletionClassifier)

    def test_unknown_backend_uses_rules(self):
        assert isinstance(build_classifier("magic"), RuleBasedClassifier)
