from datetime import datetime
from typing import List, Optional, Literal, Any, Union
from pydantic import BaseModel, ConfigDict, Field

SentimentLabel = Literal["positive", "neutral", "negative"]
EmotionLabel = Literal["Happy", "Angry", "Excited", "Neutral"]
PerformanceTier = Literal["High", "Medium", "Low"]
Trend = Literal["up", "down", "neutral"]

SENTIMENT_LABELS: List[str] = ["positive", "neutral", "negative"]
EMOTION_LABELS: List[str] = ["Happy", "Excited", "Neutral", "Angry"]

# ============================================================
# NORMALIZED POST: output of the row normalizer
# ============================================================


class NormalizedPost(BaseModel):
    postId: str
    caption: str = ""
    likes: int = Field(default=0, ge=0)
    commentsCount: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    timestamp: datetime
    comments: List[str] = []
    sentimentScore: float = 0.0
    sentimentLabel: SentimentLabel = "neutral"
    emotionLabel: EmotionLabel = "Neutral"
    engagementScore: int = 0


class Prediction(BaseModel):
    predictedPerformance: PerformanceTier
    confidenceScore: int = Field(ge=0, le=100)


class Post(NormalizedPost):
    """A canonical post as stored for a dashboard."""

    id: str = ""
    dashboardId: str = ""
    predictedPerformance: PerformanceTier = "Medium"
    confidenceScore: int = Field(default=0, ge=0, le=100)


class PostMetricsUpdate(BaseModel):
    likes: Optional[Any] = None
    commentsCount: Optional[Any] = None
    shares: Optional[Any] = None


# ============================================================
# DASHBOARDS
# ============================================================


class Dashboard(BaseModel):
    id: str
    userId: str
    name: str
    createdAt: datetime
    updatedAt: datetime


class DashboardSummary(Dashboard):
    datasetSize: int = 0


# ============================================================
# QUERIES
# ============================================================


class PostFilters(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sentiment: Optional[str] = None  # "all" or missing disables the filter
    dateFrom: Optional[str] = None
    dateTo: Optional[str] = None


class PostQuery(PostFilters):
    page: int = 1
    limit: Optional[int] = None
    sortBy: Literal[
        "timestamp", "likes", "commentsCount", "shares", "engagementScore", "sentimentScore"
    ] = "timestamp"
    sortOrder: Literal["asc", "desc"] = "desc"


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PostPage(BaseModel):
    data: List[Post]
    pagination: Pagination


# ============================================================
# ANALYTICS: output of the post aggregator
# ============================================================


class SentimentDistribution(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class EmotionDistribution(BaseModel):
    Happy: int = 0
    Excited: int = 0
    Neutral: int = 0
    Angry: int = 0


class EngagementPoint(BaseModel):
    date: str  # e.g. "Nov 14"
    engagement: int


class HashtagStat(BaseModel):
    hashtag: str
    count: int
    avgEngagement: int


class BestPost(BaseModel):
    postId: str
    caption: str
    engagementScore: int


class AnalyticsSummary(BaseModel):
    totalPosts: int
    totalLikes: int
    avgEngagement: int
    sentimentDistribution: SentimentDistribution
    emotionDistribution: EmotionDistribution
    engagementOverTime: List[EngagementPoint]
    hashtagFrequency: List[HashtagStat]
    bestPerformingPost: Optional[BestPost] = None
    engagementTrend: Trend = "neutral"


class HashtagEngagement(HashtagStat):
    totalEngagement: int


class HashtagReport(BaseModel):
    allHashtags: List[HashtagEngagement]
    topHashtags: List[HashtagEngagement]
    topByEngagement: List[HashtagEngagement]
    totalUniqueHashtags: int


# ============================================================
# AI INSIGHT CARDS
# ============================================================


class InsightCard(BaseModel):
    id: str
    title: str
    value: Union[int, str]
    description: str
    icon: str
    trend: Optional[Trend] = None


# ============================================================
# UPLOAD RESULT
# ============================================================


class IngestResult(BaseModel):
    count: int
    message: str
    data: List[Post]
