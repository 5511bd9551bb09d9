from datetime import datetime, timedelta, timezone

import pytest
from social_pulse.ai_insights import best_time_slot, correlation_strength, generate_insights, pearson

# 2024-01-01 is a Monday
MONDAY = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def posts(make_post):
    return [
        make_post("postid-0001-long", likes=10, comments=1, shares=1, when=MONDAY, sentiment="positive"),
        make_post("b", likes=10, comments=2, shares=2, when=MONDAY + timedelta(days=1), sentiment="positive"),
        make_post("c", likes=40, comments=3, shares=3, when=MONDAY + timedelta(days=2, hours=5), sentiment="neutral"),
        make_post("d", likes=40, comments=4, shares=4, when=MONDAY + timedelta(days=3), sentiment="negative"),
    ]


def test_no_posts_no_cards():
    assert generate_insights([]) == []


def test_card_order(posts):
    cards = generate_insights(posts)
    assert [c.id for c in cards] == [
        "best-post",
        "best-time",
        "engagement-trend",
        "sentiment-dominance",
        "correlation",
    ]


def test_best_post_card(posts):
    card = generate_insights(posts)[0]
    assert card.title == "Best Performing Post"
    assert card.value == 48
    assert card.description == "Post ID: d"


def test_best_post_card_truncates_id(make_post):
    card = generate_insights([make_post("postid-0001-long", likes=3)])[0]
    assert card.description == "Post ID: postid-0"


def test_best_time_card(posts):
    card = generate_insights(posts)[1]
    # Thursday 9:00 holds d (48)
    assert card.value == "Thu 9:00"
    assert card.description == "Average engagement: 48"


def test_best_time_slot_first_seen_wins_ties(make_post):
    tied = [
        make_post("a", likes=5, when=MONDAY),
        make_post("b", likes=5, when=MONDAY + timedelta(days=1, hours=2)),
    ]
    assert best_time_slot(tied) == ("Mon", 9, 5.0)
    assert best_time_slot([]) is None


def test_trend_card(posts):
    card = generate_insights(posts)[2]
    # first half mean (12 + 14) / 2 = 13, second (46 + 48) / 2 = 47
    assert card.trend == "up"
    assert card.value == "↑ 262%"
    assert card.description == "Increasing"
    assert card.icon == "\U0001F4C8"


def test_trend_card_stable(make_post):
    flat = [make_post(str(i), likes=10, when=MONDAY + timedelta(days=i)) for i in range(4)]
    card = generate_insights(flat)[2]
    assert (card.value, card.description, card.trend) == ("→ Stable", "Stable", "neutral")


def test_trend_card_down(make_post):
    falling = [make_post(str(i), likes=v, when=MONDAY + timedelta(days=i)) for i, v in enumerate([40, 40, 10, 10])]
    card = generate_insights(falling)[2]
    assert (card.value, card.trend) == ("↓ 75%", "down")


def test_sentiment_card(posts):
    card = generate_insights(posts)[3]
    assert card.value == "50% positive"
    assert card.description == "Positive: 50%, Neutral: 25%, Negative: 25%"
    assert card.icon == "\U0001F60A"


def test_sentiment_card_tie_goes_to_later_label(make_post):
    tied = [make_post("a", sentiment="positive"), make_post("b", sentiment="negative")]
    card = generate_insights(tied)[3]
    assert card.value == "50% negative"


def test_correlation_card(posts):
    card = generate_insights(posts)[4]
    assert card.value == "Strong Positive"
    assert card.description == "Correlation: 1.00"
    assert card.icon == "\U0001F517"


def test_correlation_without_variance(make_post):
    same = [make_post("a", comments=2, shares=1), make_post("b", comments=2, shares=5)]
    card = generate_insights(same)[4]
    assert card.value == "Weak Negative"
    assert card.description == "Correlation: 0.00"


def test_pearson():
    assert pearson([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
    assert pearson([1, 2, 3], [6, 4, 2]) == pytest.approx(-1.0)
    assert pearson([1, 1, 1], [1, 2, 3]) == 0.0
    assert pearson([], []) == 0.0


def test_correlation_strength():
    assert correlation_strength(0.71) == "Strong"
    assert correlation_strength(-0.5) == "Moderate"
    assert correlation_strength(0.4) == "Weak"
