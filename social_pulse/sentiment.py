import re
from typing import Dict, List, Optional

from vaderSentiment.vaderSentiment import NEGATE, SentimentIntensityAnalyzer

from .types import SentimentLabel

POSITIVE_THRESHOLD = 0.05
NEGATIVE_THRESHOLD = -0.05

# Punctuation stripped before splitting into tokens (apostrophes survive so
# "don't" still reads as a negator).
_PUNCTUATION = re.compile(r"[.,/#!?$%^&*;:{}=_`\"~()\[\]]")
_WHITESPACE = re.compile(r"\s+")


def tokenize(text: str) -> List[str]:
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned.split(" ") if cleaned else []


class LexiconSentimentScorer:
    """
    Comparative polarity over a word-valence lexicon.

    The lexicon is VADER's word table; the score is the sum of per-token
    valences (sign flipped right after a negator) divided by the token count.
    """

    def __init__(self, lexicon: Optional[Dict[str, float]] = None):
        self.lexicon = lexicon if lexicon is not None else SentimentIntensityAnalyzer().lexicon
        self.negators = {w.lower() for w in NEGATE}

    def score(self, text: str) -> float:
        tokens = tokenize(text or "")
        if not tokens:
            return 0.0

        total = 0.0
        for i, token in enumerate(tokens):
            weight = self.lexicon.get(token)
            if weight is None:
                continue
            if i > 0 and tokens[i - 1] in self.negators:
                weight = -weight
            total += weight

        return total / len(tokens)


def label_sentiment(score: float) -> SentimentLabel:
    if score > POSITIVE_THRESHOLD:
        return "positive"
    if score < NEGATIVE_THRESHOLD:
        return "negative"
    return "neutral"


_default_scorer: Optional[LexiconSentimentScorer] = None


def get_scorer() -> LexiconSentimentScorer:
    """Shared scorer; loading the lexicon once is enough for the process."""
    global _default_scorer
    if _default_scorer is None:
        _default_scorer = LexiconSentimentScorer()
    return _default_scorer
