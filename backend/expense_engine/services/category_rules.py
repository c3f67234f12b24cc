"""
Fixed keyword rule tables for expense categorization.

Rules are evaluated in order against the lower-cased description and the
first group with a matching keyword wins. Keywords match as plain substrings.
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class KeywordRule:
    """A category and the substrings that select it."""
    category: str
    keywords: Tuple[str, ...]
    notes: Optional[str] = None
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        pattern = '|'.join(re.escape(keyword) for keyword in self.keywords)
        object.__setattr__(self, 'compiled', re.compile(pattern, re.IGNORECASE))

    def matches(self, text: str) -> bool:
        return bool(text) and self.compiled.search(text) is not None


DEFAULT_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        category='Gas',
        keywords=(
            'gas', 'petro', 'esso', 'shell', 'hughes', 'petroleum', '7-eleven',
            'circle k', 'fuel', 'car wash', 'airbnb', 'westjet', 'air canada',
            'uber', 'lyft', 'taxi', 'transportation', 'go transit', 'via rail',
            'transit', 'ttc', 'gas bar', 'husky', 'gas station', 'petrocan',
        ),
        notes='Fuel and transportation',
    ),
    KeywordRule(
        category='Car Service',
        keywords=(
            'car service', 'mechanic', 'auto repair', 'car repair', 'tire',
            'oil change', 'jiffy lube', 'canadian tire auto', 'midas', 'mr lube',
            'kal tire', 'active green ross', 'dealership service', 'car dealership',
        ),
        notes='Vehicle maintenance',
    ),
    KeywordRule(
        category='Car Cleaning',
        keywords=('car wash', 'auto spa', 'car detailing', 'wax', 'detailing', 'clean car'),
        notes='Vehicle cleaning; "car wash" is claimed by Gas first',
    ),
    KeywordRule(
        category='Food',
        keywords=(
            'restaurant', 'cafe', 'coffee', 'tim hortons', 'tims', 'starbuck',
            'timmy', 'dairy queen', 'food', 'lunch', 'dinner', 'grocery',
            'supermarket', 'bakery', 'shawarma', 'popeyes', 'subway', 'a&w',
            'mcdonalds', 'pizza', 'second cup', 'freshco', 'loblaws', 'shoppers',
            'walmart', 'supercenter', 'wendy', 'harvey', 'swiss chalet', 'kfc',
            'burger', 'taco', 'sushi', 'pho', 'thai', 'chipotle', 'panera',
            'dominos', 'papa john', 'little caesars', 'metro', 'sobeys', 'longos',
            'farm boy', 'food basic', 'no frills', 'costco', 'sam',
            'wholesale club', 'grocery gateway', 'instacart', 'uber eat',
            'doordash', 'skip the dishes', 'foodora',
        ),
        notes='Food and dining',
    ),
    KeywordRule(
        category='Office',
        keywords=(
            'office', 'supplies', 'canadian tire', 'home depot', 'staples',
            'fabricland', 'paper', 'printer', 'ink', 'toner', 'business card',
            'dollar store', 'dollarama', 'ikea', 'wayfair', 'best buy',
            'the source', 'depot', 'staple', 'amazon', 'indigo', 'chapters',
            'book', 'journal', 'pen', 'marker', 'stationery',
        ),
        notes='Office supplies',
    ),
    KeywordRule(
        category='Entertainment',
        keywords=(
            'cinema', 'movie', 'theatre', 'cineplex', 'entertainment', 'museum',
            # 'park' also matches "parking", and this rule is checked before Parking
            'park', 'netflix', 'spotify', 'apple music', 'youtube', 'amazon prime',
            'disney', 'hulu', 'crave', 'tidal', 'deezer', 'pandora', 'hbo',
            'streaming', 'game', 'playstation', 'xbox', 'nintendo', 'ticket',
            'concert', 'festival', 'event', 'show', 'theater', 'venue', 'club',
            'bar', 'pub', 'alcohol', 'lcbo', 'beer store', 'wine rack',
        ),
        notes='Entertainment and subscriptions',
    ),
    KeywordRule(
        category='Health',
        keywords=(
            'pharmacy', 'drug mart', 'clinic', 'doctor', 'medical', 'shoppers',
            'health', 'dental', 'dentist', 'eye', 'optical', 'glasses', 'contact',
            'prescription', 'rexall', 'medicine', 'pharma', 'physio',
            'chiropractor', 'massage', 'therapy', 'psychologist', 'counselling',
            'wellness', 'gym', 'fitness', 'workout', 'exercise',
        ),
        notes='Health and medical',
    ),
    KeywordRule(
        category='Insurance',
        keywords=(
            'insurance', 'professional', 'financial', 'economical', 'pembridge',
            'waterloo', 'linkedin', 'consulting', 'lawyer', 'accountant', 'legal',
            'accounting', 'tax', 'service', 'advisor', 'broker', 'aviva', 'intact',
            'belair', 'td insurance', 'rbc insurance', 'allstate', 'state farm',
            'the co-operators', 'wawanesa', 'desjardins', 'sonnet', 'caa',
        ),
        notes='Insurance and professional services',
    ),
    KeywordRule(
        category='Telephone',
        keywords=(
            'phone', 'mobile', 'cell', 'wireless', 'rogers', 'bell', 'telus',
            'fido', 'koodo', 'virgin', 'freedom', 'shaw', 'cogeco', 'internet',
            'telecom', 'communication', 'data plan', 'long distance', 'roaming',
            'text message', 'wifi', 'broadband',
        ),
        notes='Telecom',
    ),
    KeywordRule(
        category='Parking',
        keywords=(
            'parking', 'lot', 'garage', 'meter', 'hangtag', 'pass', 'city of',
            'municipal', 'green p', 'impark', 'indigo', 'precise',
            'diamond parking', 'honk', 'paybyphone', 'parkopedia', 'roam',
            'parkmobile',
        ),
    ),
    KeywordRule(
        category='Professional Development',
        keywords=(
            'professional', 'development', 'course', 'training', 'seminar',
            'workshop', 'conference', 'webinar', 'certification', 'education',
            'learning', 'skill', 'tutorial', 'udemy', 'coursera',
            'linkedin learning', 'pluralsight', 'edx', 'skillshare', 'masterclass',
            'college', 'university', 'online course', 'continuing education',
            'convention', 'association', 'membership',
        ),
    ),
    KeywordRule(
        category='Admin',
        keywords=(
            'admin', 'administrative', 'clerical', 'secretary', 'assistant',
            'office manager', 'reception', 'front desk',
        ),
    ),
)

# Category column values found in bank/card CSV exports
CSV_CATEGORY_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(category='Gas', keywords=('transport',)),
    KeywordRule(category='Food', keywords=('food', 'grocery', 'restaurant')),
    KeywordRule(category='Office', keywords=('office', 'supplies')),
    KeywordRule(category='Entertainment', keywords=('entertain',)),
    KeywordRule(category='Health', keywords=('health', 'medical')),
    KeywordRule(category='Professional Development', keywords=('professional', 'insurance')),
    KeywordRule(category='Personal', keywords=('personal',)),
)


def match_rules(text: str, rules: Tuple[KeywordRule, ...]) -> Optional[str]:
    """Return the category of the first rule matching text, or None."""
    for rule in rules:
        if rule.matches(text):
            return rule.category
    return None
