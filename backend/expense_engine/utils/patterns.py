"""
Regex building blocks shared by the normalizer and the statement strategies.
"""

import re

MONTH_NAME = (
    r'\b(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?'
    r'|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?'
)

# Dates that carry a year: 03/14/2024, 2024-03-14, 14.03.24, Jan 01, 2023
FULL_DATE = (
    r'(?:\d{4}[-/.]\d{1,2}[-/.]\d{1,2}'
    r'|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}'
    rf'|{MONTH_NAME}\s+\d{{1,2}},?\s+\d{{4}})'
)

# Statement column dates, year optional: 03/14, MAR 14, 03/14/24
SHORT_DATE = (
    r'(?:\d{1,2}[-/]\d{1,2}(?:[-/.]\d{2,4})?'
    rf'|{MONTH_NAME}\s+\d{{1,2}}(?:,?\s+\d{{4}})?)'
)

ANY_DATE = rf'(?:{FULL_DATE}|{SHORT_DATE})'

CURRENCY_SYMBOL = r'[$€£]'

# 45, 45.00, 1,234.56, $45.00, -$45.00, $-45.00, (45.00), CA$6.99
AMOUNT = (
    r'\(?-?(?:(?:[A-Z]{1,2})?' + CURRENCY_SYMBOL + r'\s?)?-?'
    r'(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?\)?'
)

# Trailing debit/credit markers printed after statement amounts
AMOUNT_SUFFIX = r'(?:\s?(?:CR|DR))?'

LEADING_DATE = re.compile(rf'^\s*{ANY_DATE}(?=\s)', re.IGNORECASE)
TRAILING_AMOUNT = re.compile(rf'\s{AMOUNT}{AMOUNT_SUFFIX}\s*$', re.IGNORECASE)
ANY_DATE_TOKEN = re.compile(rf'(?<![\d/.-]){FULL_DATE}(?![\d/.-])', re.IGNORECASE)

STATEMENT_KEYWORDS = re.compile(
    r'credit card|statement|transaction|payment due|balance|purchase',
    re.IGNORECASE,
)
