import asyncio
import uuid
import weakref
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Dict, Optional, Tuple

from .metrics import filter_posts
from .types import Dashboard, Post, PostFilters


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PostStore(ABC):
    """
    Persistence boundary for dashboards and their posts.
    Dashboard lookups are owner-scoped: a dashboard owned by another user
    reads as missing.
    """

    # Dashboards

    @abstractmethod
    async def create_dashboard(self, user_id: str, name: str) -> Dashboard:
        pass

    @abstractmethod
    async def get_dashboard(self, dashboard_id: str, user_id: str) -> Optional[Dashboard]:
        pass

    @abstractmethod
    async def list_dashboards(self, user_id: str) -> List[Dashboard]:
        """Newest first."""
        pass

    @abstractmethod
    async def save_dashboard(self, dashboard: Dashboard) -> Dashboard:
        pass

    @abstractmethod
    async def delete_dashboard(self, dashboard_id: str) -> None:
        """Removes the dashboard and every post it owns."""
        pass

    # Posts

    @abstractmethod
    async def count_posts(self, dashboard_id: str) -> int:
        pass

    @abstractmethod
    async def insert_posts(self, dashboard_id: str, posts: List[Post]) -> List[Post]:
        pass

    @abstractmethod
    async def delete_posts(self, dashboard_id: str) -> int:
        pass

    @abstractmethod
    async def find_posts(
        self,
        dashboard_id: str,
        filters: Optional[PostFilters] = None,
        sort_by: str = "timestamp",
        descending: bool = True,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Post], int]:
        """Matching posts for one page, plus the total match count."""
        pass

    @abstractmethod
    async def get_post(self, post_id: str) -> Optional[Post]:
        pass

    @abstractmethod
    async def save_post(self, post: Post) -> Post:
        pass

    @abstractmethod
    async def delete_post(self, post_id: str) -> None:
        pass


class InMemoryPostStore(PostStore):
    def __init__(self):
        self._dashboards: Dict[str, Dashboard] = {}
        self._posts: Dict[str, Post] = {}

    async def create_dashboard(self, user_id: str, name: str) -> Dashboard:
        now = utc_now()
        dashboard = Dashboard(
            id=uuid.uuid4().hex, userId=user_id, name=name, createdAt=now, updatedAt=now
        )
        self._dashboards[dashboard.id] = dashboard
        return dashboard.model_copy()

    async def get_dashboard(self, dashboard_id: str, user_id: str) -> Optional[Dashboard]:
        dashboard = self._dashboards.get(dashboard_id)
        if dashboard is None or dashboard.userId != user_id:
            return None
        return dashboard.model_copy()

    async def list_dashboards(self, user_id: str) -> List[Dashboard]:
        owned = [d.model_copy() for d in self._dashboards.values() if d.userId == user_id]
        return sorted(owned, key=lambda d: d.createdAt, reverse=True)

    async def save_dashboard(self, dashboard: Dashboard) -> Dashboard:
        self._dashboards[dashboard.id] = dashboard.model_copy()
        return dashboard

    async def delete_dashboard(self, dashboard_id: str) -> None:
        await self.delete_posts(dashboard_id)
        self._dashboards.pop(dashboard_id, None)

    async def count_posts(self, dashboard_id: str) -> int:
        return sum(1 for p in self._posts.values() if p.dashboardId == dashboard_id)

    async def insert_posts(self, dashboard_id: str, posts: List[Post]) -> List[Post]:
        inserted = []
        for p in posts:
            stored = p.model_copy(update={"id": uuid.uuid4().hex, "dashboardId": dashboard_id})
            self._posts[stored.id] = stored
            inserted.append(stored.model_copy())
        return inserted

    async def delete_posts(self, dashboard_id: str) -> int:
        doomed = [pid for pid, p in self._posts.items() if p.dashboardId == dashboard_id]
        for pid in doomed:
            del self._posts[pid]
        return len(doomed)

    async def find_posts(
        self,
        dashboard_id: str,
        filters: Optional[PostFilters] = None,
        sort_by: str = "timestamp",
        descending: bool = True,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Post], int]:
        owned = [p for p in self._posts.values() if p.dashboardId == dashboard_id]
        matched = filter_posts(owned, filters)
        matched.sort(key=lambda p: getattr(p, sort_by), reverse=descending)
        page = matched[skip:] if limit is None else matched[skip : skip + limit]
        return [p.model_copy() for p in page], len(matched)

    async def get_post(self, post_id: str) -> Optional[Post]:
        post = self._posts.get(post_id)
        return post.model_copy() if post else None

    async def save_post(self, post: Post) -> Post:
        self._posts[post.id] = post.model_copy()
        return post

    async def delete_post(self, post_id: str) -> None:
        self._posts.pop(post_id, None)


# Write locks, one per dashboard within each running event loop. An
# asyncio.Lock binds to the loop that first waits on it.
# loop -> store -> {dashboard_id: Lock}
_locks: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()


def dashboard_lock(store: PostStore, dashboard_id: str) -> asyncio.Lock:
    """Serializes read-then-write sequences on one dashboard's posts."""
    per_loop = _locks.setdefault(asyncio.get_running_loop(), weakref.WeakKeyDictionary())
    per_store = per_loop.setdefault(store, {})
    if dashboard_id not in per_store:
        per_store[dashboard_id] = asyncio.Lock()
    return per_store[dashboard_id]


def release_dashboard_lock(store: PostStore, dashboard_id: str) -> None:
    for per_loop in list(_locks.values()):
        per_store = per_loop.get(store)
        if per_store:
            per_store.pop(dashboard_id, None)
