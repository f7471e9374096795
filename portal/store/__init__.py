"""Record and blog stores."""

from portal.store.blog_store import BlogStore
from portal.store.record_store import RecordStore
from portal.store.seed import PROJECTS, seed_blog_posts, seed_projects
from portal.store.totals import (
    WeeklyTotals,
    compute_all_projects_weekly_totals,
    compute_weekly_totals,
    daily_rollups,
    window_bounds,
)

__all__ = [
    "BlogStore",
    "PROJECTS",
    "RecordStore",
    "WeeklyTotals",
    "compute_all_projects_weekly_totals",
    "compute_weekly_totals",
    "daily_rollups",
    "seed_blog_posts",
    "seed_projects",
    "window_bounds",
]
