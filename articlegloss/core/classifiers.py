"""
ArticleGloss Term Classifiers
Cheap local decisions applied to every token before any lookup
"""

import re
from enum import Enum
from typing import Callable, FrozenSet, Optional

from .glossary import Glossary
from .tokens import Token, is_delimiter

# Very common English words that are never glossed by the simple English layer
STOP_WORDS: FrozenSet[str] = frozenset([
    "the", "a", "an", "and", "or", "but", "if", "then", "than", "when", "while", "of", "in",
    "on", "for", "to", "from", "by", "with", "at", "as", "is", "are", "was", "were", "be",
    "been", "being", "this", "that", "these", "those", "it", "its", "they", "them", "their",
    "he", "she", "his", "her", "we", "us", "our", "you", "your", "i", "me", "my",
    "can", "could", "will", "would", "shall", "should", "may", "might", "do", "does", "did",
    "have", "has", "had", "not", "no", "yes", "so", "such", "just", "very", "more", "most",
    "some", "any", "all", "many", "few", "much", "there", "here", "also", "only", "over",
    "into", "out", "up", "down", "about", "through", "between", "within", "without",
    "new", "high", "low", "large", "small", "big", "little", "long", "short", "old", "young",
    "use", "make", "made", "say", "says", "said", "show", "shows", "shown", "get", "got",
])

MIN_LOOKUP_LENGTH = 4

_NAME_PATTERN = re.compile(r'^[A-Z][a-z]+$')


def is_stopword(key: str) -> bool:
    return key in STOP_WORDS


def looks_like_name(raw: str) -> bool:
    """Crude proper-name test: one capital letter followed by lowercase letters"""
    if '.' in raw or '@' in raw:
        return False
    return bool(_NAME_PATTERN.match(raw))


def should_try_simple_english(key: str) -> bool:
    """Only longer, non-stopword keys are worth a dictionary lookup"""
    if len(key) < MIN_LOOKUP_LENGTH:
        return False
    return not is_stopword(key)


def is_scientific_term(key: str, glossary: Optional[Glossary]) -> bool:
    return glossary is not None and bool(key) and key in glossary


class Classification(Enum):
    PASS_THROUGH = "pass-through"
    SCIENTIFIC = "scientific"
    STOPWORD = "stopword"
    NAME = "name"
    SIMPLE_CANDIDATE = "simple-candidate"
    NO_MATCH = "no-match"


class TermClassifier:
    """
    Applies the classifiers in priority order; the first match wins.

    Order: delimiter/empty key, scientific glossary, stopword, proper name,
    simple English eligibility. The name heuristic is injectable.
    """

    def __init__(self,
                 name_heuristic: Callable[[str], bool] = looks_like_name,
                 stopwords: FrozenSet[str] = STOP_WORDS):
        self.name_heuristic = name_heuristic
        self.stopwords = stopwords

    def classify(self, token: Token, glossary: Optional[Glossary],
                 scientific: bool = True, simple_english: bool = True) -> Classification:
        if token.is_delimiter or is_delimiter(token.raw) or not token.key:
            return Classification.PASS_THROUGH

        if scientific and is_scientific_term(token.key, glossary):
            return Classification.SCIENTIFIC

        if token.key in self.stopwords:
            return Classification.STOPWORD

        if self.name_heuristic(token.raw):
            return Classification.NAME

        if simple_english and self.is_lookup_candidate(token.key):
            return Classification.SIMPLE_CANDIDATE

        return Classification.NO_MATCH

    def is_lookup_candidate(self, key: str) -> bool:
        return len(key) >= MIN_LOOKUP_LENGTH and key not in self.stopwords
