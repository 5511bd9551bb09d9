import sys
from typing import List

from .errors import NotFoundError, ValidationError
from .store import PostStore, dashboard_lock, release_dashboard_lock, utc_now
from .types import Dashboard, DashboardSummary


async def require_dashboard(store: PostStore, user_id: str, dashboard_id: str) -> Dashboard:
    dashboard = await store.get_dashboard(dashboard_id, user_id)
    if dashboard is None:
        raise NotFoundError("Dashboard", dashboard_id)
    return dashboard


async def _summarize(store: PostStore, dashboard: Dashboard) -> DashboardSummary:
    size = await store.count_posts(dashboard.id)
    return DashboardSummary(**dashboard.model_dump(), datasetSize=size)


async def create_dashboard(store: PostStore, user_id: str, name: str) -> Dashboard:
    if not name or not name.strip():
        raise ValidationError("Dashboard name is required")
    dashboard = await store.create_dashboard(user_id, name.strip())
    print(f"[Dashboards] Created '{dashboard.name}' ({dashboard.id})", file=sys.stderr)
    return dashboard


async def list_dashboards(store: PostStore, user_id: str) -> List[DashboardSummary]:
    dashboards = await store.list_dashboards(user_id)
    return [await _summarize(store, d) for d in dashboards]


async def get_dashboard(store: PostStore, user_id: str, dashboard_id: str) -> DashboardSummary:
    dashboard = await require_dashboard(store, user_id, dashboard_id)
    return await _summarize(store, dashboard)


async def rename_dashboard(store: PostStore, user_id: str, dashboard_id: str, name: str) -> Dashboard:
    """A blank name leaves the dashboard untouched."""
    dashboard = await require_dashboard(store, user_id, dashboard_id)
    if name and name.strip():
        dashboard.name = name.strip()
        dashboard.updatedAt = utc_now()
        await store.save_dashboard(dashboard)
    return dashboard


async def delete_dashboard(store: PostStore, user_id: str, dashboard_id: str) -> None:
    dashboard = await require_dashboard(store, user_id, dashboard_id)
    async with dashboard_lock(store, dashboard.id):
        removed = await store.count_posts(dashboard.id)
        await store.delete_dashboard(dashboard.id)
    release_dashboard_lock(store, dashboard.id)
    print(f"[Dashboards] Deleted {dashboard.id} and {removed} posts", file=sys.stderr)
