"""
Database package — persisted launch seen-set and bounded launch feed.
"""

from backend_pumpwatch.database.launch_store import (
    clamp_limit,
    count_launches,
    init_db,
    recent_launches,
    remember_launch,
    reset_engine_for_test,
)

__all__ = [
    "clamp_limit",
    "count_launches",
    "init_db",
    "recent_launches",
    "remember_launch",
    "reset_engine_for_test",
]
