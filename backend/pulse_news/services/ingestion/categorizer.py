"""
Keyword-weighted categorization of article text.
"""

import re
from typing import Mapping, Optional, Sequence

from pulse_news.core.taxonomy import get_category_keywords
from pulse_news.models.domain import Category

LONG_KEYWORD_LENGTH = 5
LONG_KEYWORD_WEIGHT = 2
SHORT_KEYWORD_WEIGHT = 1


class Categorizer:
    """
    Maps free text to a category of the fixed taxonomy.

    For each category, every whole-word occurrence of one of its keywords
    adds 2 to the score when the keyword is longer than five characters and
    1 otherwise. The strictly highest score wins, ties go to the category
    declared first, and a zero maximum yields ``Category.GENERAL``.
    """

    def __init__(self, keywords: Optional[Mapping[Category, Sequence[str]]] = None):
        table = keywords if keywords is not None else get_category_keywords()
        self._patterns: list[tuple[Category, list[tuple[re.Pattern, int]]]] = [
            (category, [self._compile(kw) for kw in words])
            for category, words in table.items()
        ]

    @staticmethod
    def _compile(keyword: str) -> tuple[re.Pattern, int]:
        keyword = keyword.lower()
        weight = LONG_KEYWORD_WEIGHT if len(keyword) > LONG_KEYWORD_LENGTH else SHORT_KEYWORD_WEIGHT
        return re.compile(rf"\b{re.escape(keyword)}\b"), weight

    def scores(self, text: str) -> dict[Category, int]:
        """Aggregate keyword score per category, in declaration order."""
        text = (text or "").lower()
        return {
            category: sum(len(p.findall(text)) * weight for p, weight in patterns)
            for category, patterns in self._patterns
        }

    def categorize(self, text: str) -> Category:
        best = Category.GENERAL
        best_score = 0
        for category, score in self.scores(text).items():
            if score > best_score:
                best, best_score = category, score
        return best

    def categorize_parts(self, *parts: Optional[str]) -> Category:
        """Categorize the concatenation of several text fragments."""
        return self.categorize(" ".join(p for p in parts if p))
