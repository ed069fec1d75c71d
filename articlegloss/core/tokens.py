"""
ArticleGloss Tokenizer
Lossless splitting of article text and lookup-key normalization
"""

import re
from dataclasses import dataclass
from typing import List

# Single punctuation characters that are split out as their own tokens
DELIMITER_CHARS = ',.!?;:()"\'[]{}'

_SPLIT_PATTERN = re.compile(r'(\s+|[' + re.escape(DELIMITER_CHARS) + r'])')
_WHITESPACE_PATTERN = re.compile(r'^\s+$')
_BOUNDARY_PATTERN = re.compile(r'^[^a-z0-9]+|[^a-z0-9]+$')


def normalize_word(raw: str) -> str:
    """
    Canonical lookup key for a raw token

    Lowercases and strips leading/trailing non-alphanumeric runs; internal
    punctuation such as hyphens is kept. Returns "" for pure punctuation.
    """
    if not raw:
        return ""
    return _BOUNDARY_PATTERN.sub('', raw.lower())


def is_delimiter(raw: str) -> bool:
    """True for a whitespace run or exactly one delimiter character"""
    if not raw:
        return False
    if _WHITESPACE_PATTERN.match(raw):
        return True
    return len(raw) == 1 and raw in DELIMITER_CHARS


@dataclass(frozen=True)
class Token:
    """An immutable slice of the original text"""

    raw: str
    key: str
    is_delimiter: bool = False


def tokenize(text: str) -> List[Token]:
    """
    Split text into word-like runs and single delimiters.

    Concatenating ``token.raw`` for every returned token gives back ``text``.
    """
    tokens = []
    for piece in _SPLIT_PATTERN.split(text or ""):
        if not piece:
            continue
        if is_delimiter(piece):
            tokens.append(Token(piece, "", True))
        else:
            tokens.append(Token(piece, normalize_word(piece)))
    return tokens
