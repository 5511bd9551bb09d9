import math
from typing import List, Dict, Optional, Sequence, Tuple

from .metrics import DAYS, classify_trend, find_best_post, round_half_up, split_halves
from .types import InsightCard, NormalizedPost, SENTIMENT_LABELS

STRONG_CORRELATION = 0.7
MODERATE_CORRELATION = 0.4

SENTIMENT_ICONS = {"positive": "\U0001F60A", "negative": "\U0001F614", "neutral": "\U0001F610"}
TREND_ICONS = {"up": "\U0001F4C8", "down": "\U0001F4C9", "neutral": "➡️"}
TREND_WORDS = {"up": "Increasing", "down": "Decreasing", "neutral": "Stable"}


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r; 0 when either series has no variance."""
    n = len(xs)
    if n == 0 or n != len(ys):
        return 0.0
    mx = sum(xs) / n
    my = sum(ys) / n
    covariance = 0.0
    var_x = 0.0
    var_y = 0.0
    for x, y in zip(xs, ys):
        dx = x - mx
        dy = y - my
        covariance += dx * dy
        var_x += dx * dx
        var_y += dy * dy
    if var_x <= 0 or var_y <= 0:
        return 0.0
    return covariance / math.sqrt(var_x * var_y)


def best_time_slot(posts: Sequence[NormalizedPost]) -> Optional[Tuple[str, int, float]]:
    """(weekday, hour, mean engagement) of the strongest slot; first seen wins ties."""
    slots: Dict[Tuple[str, int], Dict[str, int]] = {}
    for p in posts:
        key = (DAYS[p.timestamp.weekday()], p.timestamp.hour)
        if key not in slots:
            slots[key] = {"count": 0, "total": 0}
        slots[key]["count"] += 1
        slots[key]["total"] += p.engagementScore

    best: Optional[Tuple[str, int, float]] = None
    for (day, hour), s in slots.items():
        avg = s["total"] / s["count"]
        if best is None or avg > best[2]:
            best = (day, hour, avg)
    return best


def _best_post_card(posts: Sequence[NormalizedPost]) -> InsightCard:
    best = find_best_post(posts)
    return InsightCard(
        id="best-post",
        title="Best Performing Post",
        value=best.engagementScore,
        description=f"Post ID: {best.postId[:8]}",
        icon="\U0001F680",
    )


def _best_time_card(posts: Sequence[NormalizedPost]) -> Optional[InsightCard]:
    slot = best_time_slot(posts)
    if slot is None:
        return None
    day, hour, avg = slot
    return InsightCard(
        id="best-time",
        title="Best Posting Time",
        value=f"{day} {hour}:00",
        description=f"Average engagement: {round_half_up(avg)}",
        icon="⏰",
    )


def _trend_card(posts: Sequence[NormalizedPost]) -> InsightCard:
    first_avg, second_avg = split_halves(posts)
    trend = classify_trend(first_avg, second_avg)
    percent = round_half_up(((second_avg - first_avg) / first_avg) * 100) if first_avg > 0 else 0

    if trend == "up":
        value = f"↑ {abs(percent)}%"
    elif trend == "down":
        value = f"↓ {abs(percent)}%"
    else:
        value = "→ Stable"

    return InsightCard(
        id="engagement-trend",
        title="Engagement Trend",
        value=value,
        description=TREND_WORDS[trend],
        icon=TREND_ICONS[trend],
        trend=trend,
    )


def _sentiment_card(posts: Sequence[NormalizedPost]) -> InsightCard:
    counts = {label: 0 for label in SENTIMENT_LABELS}
    for p in posts:
        counts[p.sentimentLabel] += 1
    total = len(posts)

    # Earlier label is kept only when strictly ahead.
    dominant = SENTIMENT_LABELS[0]
    for label in SENTIMENT_LABELS[1:]:
        if not counts[dominant] > counts[label]:
            dominant = label

    def pct(label: str) -> int:
        return round_half_up(counts[label] / total * 100)

    return InsightCard(
        id="sentiment-dominance",
        title="Sentiment Dominance",
        value=f"{pct(dominant)}% {dominant}",
        description=(
            f"Positive: {pct('positive')}%, Neutral: {pct('neutral')}%, "
            f"Negative: {pct('negative')}%"
        ),
        icon=SENTIMENT_ICONS[dominant],
    )


def correlation_strength(r: float) -> str:
    if abs(r) > STRONG_CORRELATION:
        return "Strong"
    if abs(r) > MODERATE_CORRELATION:
        return "Moderate"
    return "Weak"


def _correlation_card(posts: Sequence[NormalizedPost]) -> InsightCard:
    r = pearson(
        [float(p.commentsCount) for p in posts],
        [float(p.shares) for p in posts],
    )
    direction = "Positive" if r > 0 else "Negative"
    return InsightCard(
        id="correlation",
        title="Comments ↔ Shares",
        value=f"{correlation_strength(r)} {direction}",
        description=f"Correlation: {r:.2f}",
        icon="\U0001F517" if r > 0 else "\U0001F500",
    )


def generate_insights(posts: Sequence[NormalizedPost]) -> List[InsightCard]:
    """
    Heuristic insight cards for a dashboard, in fixed order:
    best post, best posting time, engagement trend, sentiment dominance,
    comments/shares correlation. No posts means no cards.
    """
    if not posts:
        return []

    cards = [_best_post_card(posts)]
    time_card = _best_time_card(posts)
    if time_card:
        cards.append(time_card)
    cards.append(_trend_card(posts))
    cards.append(_sentiment_card(posts))
    cards.append(_correlation_card(posts))
    return cards
