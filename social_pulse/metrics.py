import math
import re
from datetime import datetime, time
from typing import List, Dict, Optional, Sequence, Tuple

from .cleaner import parse_date_string
from .errors import ValidationError
from .types import (
    NormalizedPost,
    PostFilters,
    AnalyticsSummary,
    SentimentDistribution,
    EmotionDistribution,
    EngagementPoint,
    HashtagStat,
    HashtagEngagement,
    HashtagReport,
    BestPost,
    Trend,
    SENTIMENT_LABELS,
    EMOTION_LABELS,
)

# ============================================================
# Helpers
# ============================================================


def mean(arr: Sequence[float]) -> float:
    return float(sum(arr) / len(arr)) if arr else 0.0


def round_half_up(n: float) -> int:
    """Halves round up: 2.5 -> 3, -2.5 -> -2."""
    return int(math.floor(n + 0.5))


DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

TIMELINE_POINTS = 20
TOP_HASHTAGS = 10
HASHTAG_REPORT_SIZE = 5
TREND_UP_FACTOR = 1.1
TREND_DOWN_FACTOR = 0.9

HASHTAG_REGEX = re.compile(r"#\w+")


def date_label(ts: datetime) -> str:
    return f"{ts.strftime('%b')} {ts.day}"


# ============================================================
# Filtering
# ============================================================


def _parse_bound(value: str, field: str) -> datetime:
    parsed = parse_date_string(value)
    if parsed is None:
        raise ValidationError(f"Invalid {field}: {value!r}", details={"field": field})
    return parsed


def date_bounds(filters: PostFilters) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive [from, to] range; the `to` bound covers its whole day."""
    start = _parse_bound(filters.dateFrom, "dateFrom") if filters.dateFrom else None
    end = None
    if filters.dateTo:
        end = _parse_bound(filters.dateTo, "dateTo")
        end = datetime.combine(end.date(), time(23, 59, 59, 999999), tzinfo=end.tzinfo)
    return start, end


def filter_posts(posts: Sequence[NormalizedPost], filters: Optional[PostFilters]) -> List[NormalizedPost]:
    if filters is None:
        return list(posts)

    sentiment = filters.sentiment if filters.sentiment and filters.sentiment != "all" else None
    start, end = date_bounds(filters)

    selected = []
    for p in posts:
        if sentiment and p.sentimentLabel != sentiment:
            continue
        if start and p.timestamp < start:
            continue
        if end and p.timestamp > end:
            continue
        selected.append(p)
    return selected


# ============================================================
# Distributions
# ============================================================


def compute_sentiment_distribution(posts: Sequence[NormalizedPost]) -> SentimentDistribution:
    counts = {label: 0 for label in SENTIMENT_LABELS}
    for p in posts:
        counts[p.sentimentLabel] += 1
    return SentimentDistribution(**counts)


def compute_emotion_distribution(posts: Sequence[NormalizedPost]) -> EmotionDistribution:
    counts = {label: 0 for label in EMOTION_LABELS}
    for p in posts:
        emotion = p.emotionLabel or "Neutral"
        counts[emotion] = counts.get(emotion, 0) + 1
    return EmotionDistribution(**counts)


# ============================================================
# Engagement over time
# ============================================================


def compute_engagement_over_time(posts: Sequence[NormalizedPost]) -> List[EngagementPoint]:
    """
    Mean engagement per calendar day, in the order days are first seen.
    Callers pass posts newest-first; only the last 20 groups are kept.
    """
    groups: Dict[str, Dict[str, int]] = {}
    for p in posts:
        label = date_label(p.timestamp)
        if label not in groups:
            groups[label] = {"engagement": 0, "count": 0}
        groups[label]["engagement"] += p.engagementScore
        groups[label]["count"] += 1

    points = [
        EngagementPoint(date=label, engagement=round_half_up(g["engagement"] / g["count"]))
        for label, g in groups.items()
    ]
    return points[-TIMELINE_POINTS:]


# ============================================================
# Hashtags
# ============================================================


def extract_hashtags(caption: str) -> List[str]:
    """Lower-cased hashtags of a caption, de-duplicated, in order of appearance."""
    seen: List[str] = []
    for tag in HASHTAG_REGEX.findall(caption or ""):
        tag = tag.lower()
        if tag not in seen:
            seen.append(tag)
    return seen


def tally_hashtags(posts: Sequence[NormalizedPost]) -> List[HashtagEngagement]:
    tally: Dict[str, Dict[str, int]] = {}
    for p in posts:
        for tag in extract_hashtags(p.caption):
            if tag not in tally:
                tally[tag] = {"count": 0, "totalEngagement": 0}
            tally[tag]["count"] += 1
            tally[tag]["totalEngagement"] += p.engagementScore

    return [
        HashtagEngagement(
            hashtag=tag,
            count=t["count"],
            avgEngagement=round_half_up(t["totalEngagement"] / t["count"]),
            totalEngagement=t["totalEngagement"],
        )
        for tag, t in tally.items()
    ]


def compute_hashtag_frequency(posts: Sequence[NormalizedPost]) -> List[HashtagStat]:
    ranked = sorted(tally_hashtags(posts), key=lambda h: h.count, reverse=True)
    return [
        HashtagStat(hashtag=h.hashtag, count=h.count, avgEngagement=h.avgEngagement)
        for h in ranked[:TOP_HASHTAGS]
    ]


def compute_hashtag_report(posts: Sequence[NormalizedPost]) -> HashtagReport:
    all_tags = tally_hashtags(posts)
    by_count = sorted(all_tags, key=lambda h: h.count, reverse=True)
    by_engagement = sorted(by_count, key=lambda h: h.avgEngagement, reverse=True)
    return HashtagReport(
        allHashtags=by_engagement,
        topHashtags=by_count[:HASHTAG_REPORT_SIZE],
        topByEngagement=by_engagement[:HASHTAG_REPORT_SIZE],
        totalUniqueHashtags=len(all_tags),
    )


# ============================================================
# Best post & trend
# ============================================================


def find_best_post(posts: Sequence[NormalizedPost]) -> Optional[NormalizedPost]:
    best = None
    for p in posts:
        if best is None or p.engagementScore > best.engagementScore:
            best = p
    return best


def split_halves(posts: Sequence[NormalizedPost]) -> Tuple[float, float]:
    """Mean engagement of the older and newer half (older half gets floor(n/2))."""
    ordered = sorted(posts, key=lambda p: p.timestamp)
    mid = len(ordered) // 2
    first = [float(p.engagementScore) for p in ordered[:mid]]
    second = [float(p.engagementScore) for p in ordered[mid:]]
    return mean(first), mean(second)


def classify_trend(first_avg: float, second_avg: float) -> Trend:
    if second_avg > first_avg * TREND_UP_FACTOR:
        return "up"
    if second_avg < first_avg * TREND_DOWN_FACTOR:
        return "down"
    return "neutral"


def compute_engagement_trend(posts: Sequence[NormalizedPost]) -> Trend:
    return classify_trend(*split_halves(posts))


# ============================================================
# Full analytics payload
# ============================================================


def compute_analytics(posts: Sequence[NormalizedPost]) -> AnalyticsSummary:
    if not posts:
        return AnalyticsSummary(
            totalPosts=0,
            totalLikes=0,
            avgEngagement=0,
            sentimentDistribution=SentimentDistribution(),
            emotionDistribution=EmotionDistribution(),
            engagementOverTime=[],
            hashtagFrequency=[],
            bestPerformingPost=None,
            engagementTrend="neutral",
        )

    best = find_best_post(posts)
    return AnalyticsSummary(
        totalPosts=len(posts),
        totalLikes=sum(p.likes for p in posts),
        avgEngagement=round_half_up(mean([float(p.engagementScore) for p in posts])),
        sentimentDistribution=compute_sentiment_distribution(posts),
        emotionDistribution=compute_emotion_distribution(posts),
        engagementOverTime=compute_engagement_over_time(posts),
        hashtagFrequency=compute_hashtag_frequency(posts),
        bestPerformingPost=BestPost(
            postId=best.postId, caption=best.caption, engagementScore=best.engagementScore
        ),
        engagementTrend=compute_engagement_trend(posts),
    )
