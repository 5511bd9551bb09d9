from typing import List, Optional, Sequence

from .metrics import round_half_up
from .types import NormalizedPost, Post, Prediction

HIGH_FACTOR = 1.2
LOW_FACTOR = 0.8


def cohort_average(posts: Sequence[NormalizedPost]) -> float:
    if not posts:
        return 0.0
    return sum(p.engagementScore for p in posts) / len(posts)


def calculate_prediction(engagement_score: float, avg_engagement: Optional[float]) -> Prediction:
    """
    Places a post's engagement against its cohort average:
    >= 120% of the average is High, <= 80% is Low, anything between is Medium.
    """
    if not avg_engagement:
        return Prediction(predictedPerformance="Medium", confidenceScore=50)

    threshold_high = avg_engagement * HIGH_FACTOR
    threshold_low = avg_engagement * LOW_FACTOR

    if engagement_score >= threshold_high:
        tier = "High"
        deviation = (engagement_score - avg_engagement) / avg_engagement
        confidence = min(95.0, max(60.0, 60 + deviation * 100))
    elif engagement_score <= threshold_low:
        tier = "Low"
        deviation = (avg_engagement - engagement_score) / avg_engagement
        confidence = min(95.0, max(60.0, 60 + deviation * 100))
    else:
        tier = "Medium"
        deviation = abs(engagement_score - avg_engagement) / avg_engagement
        confidence = max(50.0, 70 - deviation * 50)

    return Prediction(
        predictedPerformance=tier,  # type: ignore
        confidenceScore=round_half_up(confidence),
    )


def attach_predictions(posts: List[NormalizedPost], dashboard_id: str = "") -> List[Post]:
    """Predict every post of an upload batch against the batch's own average."""
    avg = cohort_average(posts)
    predicted: List[Post] = []
    for p in posts:
        prediction = calculate_prediction(p.engagementScore, avg)
        predicted.append(
            Post(
                **p.model_dump(),
                dashboardId=dashboard_id,
                predictedPerformance=prediction.predictedPerformance,
                confidenceScore=prediction.confidenceScore,
            )
        )
    return predicted
