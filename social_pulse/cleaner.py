import re
import sys
import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import List, Dict, Any, Mapping, Optional

from .emotion import detect_emotion
from .sentiment import LexiconSentimentScorer, get_scorer, label_sentiment
from .types import NormalizedPost

# Alias -> canonical field. Keys are already in normalized (trimmed,
# lower-case, underscored) form; canonical names map to themselves.
COLUMN_MAP: Mapping[str, str] = MappingProxyType(
    {
        "id": "postId",
        "post_id": "postId",
        "postid": "postId",
        "caption": "caption",
        "post_text": "caption",
        "text": "caption",
        "description": "caption",
        "content": "caption",
        "likes": "likes",
        "likes_count": "likes",
        "likescount": "likes",
        "like_count": "likes",
        "comments_count": "commentsCount",
        "commentscount": "commentsCount",
        "comment_count": "commentsCount",
        "comments": "commentsCount",
        "shares": "shares",
        "shares_count": "shares",
        "sharescount": "shares",
        "share_count": "shares",
        "date": "timestamp",
        "timestamp": "timestamp",
        "created_at": "timestamp",
        "createdat": "timestamp",
        "posted_at": "timestamp",
        "time": "timestamp",
        "comments_text": "commentTexts",
        "commenttexts": "commentTexts",
        "comment": "commentTexts",
    }
)

_SEPARATORS = re.compile(r"[\s-]+")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_EPOCH_STRING = re.compile(r"^\d{6,}(\.\d+)?$")

EPOCH_MS_CUTOFF = 1e12
POST_ID_LENGTH = 8

# Non-ISO layouts commonly seen in spreadsheet exports.
_DATE_FORMATS = [
    "%Y%m%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%b %d, %Y %H:%M",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%a, %d %b %Y %H:%M:%S %Z",
]


def normalize_key(key: str) -> str:
    lower = _SEPARATORS.sub("_", str(key).strip().lower())
    return COLUMN_MAP.get(lower, lower)


def coerce_count(value: Any) -> int:
    """Integer prefix of the value, 0 when unparseable, never negative."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        number = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return 0
        number = int(match.group(1))
    else:
        return 0
    return max(number, 0)


def parse_comment_texts(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    if isinstance(value, str):
        return [piece.strip() for piece in value.split("|") if piece.strip()]
    return []


def _from_epoch(value: float) -> Optional[datetime]:
    seconds = value if value < EPOCH_MS_CUTOFF else value / 1000.0
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date_string(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None
    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Returns the parsed instant in UTC, or None when the value cannot be read.
    Numbers below 1e12 are epoch seconds, larger ones epoch milliseconds.
    Numeric strings (typical for CSV exports) are read as numbers, except
    eight-digit strings that form a valid YYYYMMDD date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        if value != value:
            return None
        return _from_epoch(float(value))
    if isinstance(value, str):
        stripped = value.strip()
        if _EPOCH_STRING.match(stripped):
            # eight digits that form a calendar date are YYYYMMDD
            if len(stripped) == 8:
                compact = parse_date_string(stripped)
                if compact is not None:
                    return compact
            return _from_epoch(float(stripped))
        return parse_date_string(stripped)
    return None


def generate_post_id() -> str:
    return uuid.uuid4().hex[:POST_ID_LENGTH]


def normalize_row(
    row: Dict[str, Any],
    scorer: Optional[LexiconSentimentScorer] = None,
    now: Optional[datetime] = None,
) -> NormalizedPost:
    """
    Maps an arbitrary CSV/JSON row onto the canonical post shape.
    Malformed fields fall back to defaults; this never raises for a dict row.
    """
    scorer = scorer or get_scorer()

    normalized: Dict[str, Any] = {}
    for key, value in row.items():
        normalized[normalize_key(key)] = value

    caption_value = normalized.get("caption") or normalized.get("text") or ""
    caption = str(caption_value)

    score = scorer.score(caption)
    likes = coerce_count(normalized.get("likes"))
    comments_count = coerce_count(normalized.get("commentsCount"))
    shares = coerce_count(normalized.get("shares"))

    raw_timestamp = normalized.get("timestamp")
    timestamp = parse_timestamp(raw_timestamp)
    if timestamp is None:
        if raw_timestamp not in (None, ""):
            print(
                f"[Normalize] WARNING: Unreadable timestamp {raw_timestamp!r}, using ingestion time",
                file=sys.stderr,
            )
        timestamp = now or datetime.now(timezone.utc)

    post_id_value = normalized.get("postId")
    post_id = str(post_id_value) if post_id_value not in (None, "") else generate_post_id()

    return NormalizedPost(
        postId=post_id,
        caption=caption,
        likes=likes,
        commentsCount=comments_count,
        shares=shares,
        timestamp=timestamp,
        comments=parse_comment_texts(normalized.get("commentTexts")),
        sentimentScore=score,
        sentimentLabel=label_sentiment(score),
        emotionLabel=detect_emotion(caption, scorer),
        engagementScore=likes + comments_count + shares,
    )


def normalize_rows(
    rows: List[Dict[str, Any]], now: Optional[datetime] = None
) -> List[NormalizedPost]:
    now = now or datetime.now(timezone.utc)
    return [normalize_row(row, now=now) for row in rows]
