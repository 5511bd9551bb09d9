from typing import Dict, List, Optional, Tuple

from .sentiment import LexiconSentimentScorer, get_scorer
from .types import EmotionLabel

# Keyword lists are matched as lower-case substrings of the caption.
EMOTION_KEYWORDS: Dict[str, List[str]] = {
    "happy": [
        "happy", "joy", "excited", "amazing", "wonderful", "great", "love",
        "awesome", "fantastic", "brilliant", "perfect", "best", "celebrate",
        "smile", "laugh", "\U0001F60A", "\U0001F604", "\U0001F603", "\U0001F389",
        "❤️",
    ],
    "angry": [
        "angry", "mad", "furious", "hate", "terrible", "awful", "horrible",
        "disgusting", "annoyed", "frustrated", "rage", "outrage", "\U0001F620",
        "\U0001F621", "\U0001F92C",
    ],
    "excited": [
        "excited", "thrilled", "pumped", "energetic", "hyped", "stoked",
        "ecstatic", "elated", "fire", "lit", "\U0001F525", "⚡", "\U0001F4A5",
    ],
}

# Scoring order doubles as tie-break priority.
CATEGORY_ORDER = ["happy", "angry", "excited", "neutral"]

SENTIMENT_BOOST_THRESHOLD = 0.1

_LABELS: Dict[str, EmotionLabel] = {
    "happy": "Happy",
    "angry": "Angry",
    "excited": "Excited",
}


def score_emotions(
    text: str, scorer: Optional[LexiconSentimentScorer] = None
) -> List[Tuple[str, int]]:
    """Per-category scores as ordered (category, score) pairs."""
    lower = (text or "").lower()
    scores = {category: 0 for category in CATEGORY_ORDER}

    for category, keywords in EMOTION_KEYWORDS.items():
        for keyword in keywords:
            if keyword in lower:
                scores[category] += 1

    comparative = (scorer or get_scorer()).score(text or "")
    if comparative > SENTIMENT_BOOST_THRESHOLD:
        scores["happy"] += 2
        scores["excited"] += 1
    elif comparative < -SENTIMENT_BOOST_THRESHOLD:
        scores["angry"] += 2
    else:
        scores["neutral"] += 1

    return [(category, scores[category]) for category in CATEGORY_ORDER]


def detect_emotion(text: str, scorer: Optional[LexiconSentimentScorer] = None) -> EmotionLabel:
    best_category = ""
    best_score = 0
    for category, score in score_emotions(text, scorer):
        if score > best_score:
            best_category, best_score = category, score

    if best_score == 0:
        return "Neutral"
    return _LABELS.get(best_category, "Neutral")
