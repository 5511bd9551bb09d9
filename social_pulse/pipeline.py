import math
import sys
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

from .ai_insights import generate_insights
from .cleaner import coerce_count, normalize_rows
from .config import Settings, load_settings
from .dashboards import require_dashboard
from .emotion import detect_emotion
from .errors import NotFoundError
from .metrics import compute_analytics, compute_hashtag_report
from .parsers import parse_upload, validate_rows
from .prediction import attach_predictions, calculate_prediction
from .sentiment import get_scorer, label_sentiment
from .store import PostStore, dashboard_lock, utc_now
from .types import (
    AnalyticsSummary,
    HashtagReport,
    IngestResult,
    InsightCard,
    Pagination,
    Post,
    PostFilters,
    PostMetricsUpdate,
    PostPage,
    PostQuery,
)


# ============================================================
# Ingestion
# ============================================================


async def ingest_rows(
    store: PostStore,
    user_id: str,
    dashboard_id: str,
    rows: Any,
    overwrite: bool = False,
    now: Optional[datetime] = None,
) -> IngestResult:
    """
    Normalizes a parsed upload, predicts each post against the batch average
    and stores the batch. A structurally invalid payload aborts before any
    write happens.
    """
    rows = validate_rows(rows)
    dashboard = await require_dashboard(store, user_id, dashboard_id)

    print(f"[Ingest] Normalizing {len(rows)} rows for dashboard {dashboard_id}", file=sys.stderr)
    normalized = normalize_rows(rows, now=now or datetime.now(timezone.utc))
    predicted = attach_predictions(normalized, dashboard_id)

    async with dashboard_lock(store, dashboard_id):
        if overwrite:
            removed = await store.delete_posts(dashboard_id)
            print(f"[Ingest] Overwrite: removed {removed} existing posts", file=sys.stderr)

        inserted = await store.insert_posts(dashboard_id, predicted)

        dashboard.updatedAt = utc_now()
        await store.save_dashboard(dashboard)

    return IngestResult(
        count=len(inserted),
        message=f"Successfully uploaded {len(inserted)} posts",
        data=inserted,
    )


async def ingest_upload(
    store: PostStore,
    user_id: str,
    dashboard_id: str,
    filename: str,
    content: bytes,
    overwrite: bool = False,
    settings: Optional[Settings] = None,
) -> IngestResult:
    await require_dashboard(store, user_id, dashboard_id)
    rows = parse_upload(filename, content, settings)
    return await ingest_rows(store, user_id, dashboard_id, rows, overwrite=overwrite)


# ============================================================
# Single-post edits
# ============================================================


async def _require_owned_post(store: PostStore, user_id: str, post_id: str) -> Post:
    post = await store.get_post(post_id)
    if post is None or await store.get_dashboard(post.dashboardId, user_id) is None:
        raise NotFoundError("Post", post_id)
    return post


def rederive_post(post: Post) -> Post:
    """Recomputes engagement, sentiment and emotion from the post's own fields."""
    scorer = get_scorer()
    score = scorer.score(post.caption)
    return post.model_copy(
        update={
            "engagementScore": post.likes + post.commentsCount + post.shares,
            "sentimentScore": score,
            "sentimentLabel": label_sentiment(score),
            "emotionLabel": detect_emotion(post.caption, scorer),
        }
    )


async def update_post_metrics(
    store: PostStore, user_id: str, post_id: str, update: PostMetricsUpdate
) -> Post:
    """
    Applies new likes/comments/shares and recomputes every derived field.
    The prediction uses the average over the whole dashboard, with this
    post's new engagement in place of its old one.
    """
    post = await _require_owned_post(store, user_id, post_id)

    async with dashboard_lock(store, post.dashboardId):
        post = await _require_owned_post(store, user_id, post_id)

        changes: Dict[str, int] = {}
        for field in ("likes", "commentsCount", "shares"):
            value = getattr(update, field)
            if value is not None:
                changes[field] = coerce_count(value)
        post = rederive_post(post.model_copy(update=changes))

        cohort, _ = await store.find_posts(post.dashboardId)
        scores = [post.engagementScore if p.id == post.id else p.engagementScore for p in cohort]
        avg = sum(scores) / len(scores) if scores else 0.0

        prediction = calculate_prediction(post.engagementScore, avg)
        post = post.model_copy(
            update={
                "predictedPerformance": prediction.predictedPerformance,
                "confidenceScore": prediction.confidenceScore,
            }
        )
        print(
            f"[Update] Post {post_id}: engagement={post.engagementScore} "
            f"avg={avg:.1f} -> {prediction.predictedPerformance} ({prediction.confidenceScore}%)",
            file=sys.stderr,
        )
        return await store.save_post(post)


async def delete_post(store: PostStore, user_id: str, post_id: str) -> None:
    post = await _require_owned_post(store, user_id, post_id)
    await store.delete_post(post.id)


# ============================================================
# Reads
# ============================================================


async def list_posts(
    store: PostStore,
    user_id: str,
    dashboard_id: str,
    query: Optional[PostQuery] = None,
    settings: Optional[Settings] = None,
) -> PostPage:
    await require_dashboard(store, user_id, dashboard_id)
    query = query or PostQuery()
    settings = settings or load_settings()

    limit = min(max(query.limit or settings.pageSize, 1), settings.maxPageSize)
    page = max(query.page, 1)

    posts, total = await store.find_posts(
        dashboard_id,
        filters=query,
        sort_by=query.sortBy,
        descending=query.sortOrder == "desc",
        skip=(page - 1) * limit,
        limit=limit,
    )
    return PostPage(
        data=posts,
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


async def _dashboard_posts(
    store: PostStore, user_id: str, dashboard_id: str, filters: Optional[PostFilters] = None
) -> List[Post]:
    await require_dashboard(store, user_id, dashboard_id)
    posts, _ = await store.find_posts(dashboard_id, filters=filters)
    return posts


async def get_analytics(
    store: PostStore, user_id: str, dashboard_id: str, filters: Optional[PostFilters] = None
) -> AnalyticsSummary:
    posts = await _dashboard_posts(store, user_id, dashboard_id, filters)
    print(f"[Analytics] Aggregating {len(posts)} posts for dashboard {dashboard_id}", file=sys.stderr)
    return compute_analytics(posts)


async def get_insights(store: PostStore, user_id: str, dashboard_id: str) -> List[InsightCard]:
    return generate_insights(await _dashboard_posts(store, user_id, dashboard_id))


async def get_hashtag_report(store: PostStore, user_id: str, dashboard_id: str) -> HashtagReport:
    return compute_hashtag_report(await _dashboard_posts(store, user_id, dashboard_id))
