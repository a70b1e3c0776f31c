"""
Tests for the launch store (temporary SQLite via the launch_store fixture).
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from backend_pumpwatch.core.exceptions import StoreUnavailableError
from backend_pumpwatch.solana_listener.models import LaunchEvent
from conftest import NOW, VALID_MINT, VALID_MINT_2


def event(mint=VALID_MINT, signature="sig1", **kw) -> LaunchEvent:
    return LaunchEvent(mint=mint, signature=signature, name="Coin", symbol="C", timestamp=NOW, **kw)


def test_remember_launch_dedupes_by_mint(launch_store):
    assert launch_store.remember_launch(event(), now=NOW) is True
    assert launch_store.remember_launch(event(signature="other"), now=NOW) is False
    assert launch_store.count_launches() == 1


def test_signature_is_the_key_without_mint(launch_store):
    assert launch_store.remember_launch(event(mint=None, signature="s1"), now=NOW) is True
    assert launch_store.remember_launch(event(mint=None, signature="s1"), now=NOW) is False
    assert launch_store.remember_launch(event(mint=None, signature=None), now=NOW) is False
    assert launch_store.count_launches() == 1


def test_recent_launches_newest_first_with_received_at(launch_store):
    launch_store.remember_launch(event(VALID_MINT), now=NOW)
    launch_store.remember_launch(event(VALID_MINT_2), now=NOW + 5)
    items = launch_store.recent_launches(10)
    assert [i["mint"] for i in items] == [VALID_MINT_2, VALID_MINT]
    assert items[0]["receivedAt"] == int(NOW) + 5
    assert items[0]["kind"] == "pump_create_v2"
    assert LaunchEvent.from_dict(items[1]) == event(VALID_MINT)


def test_list_is_trimmed_to_cap_but_seen_set_persists(launch_store):
    for i in range(5):
        launch_store.remember_launch(event(mint=None, signature=f"s{i}"), cap=3, now=NOW + i)
    assert launch_store.count_launches() == 3
    assert [i["signature"] for i in launch_store.recent_launches(10)] == ["s4", "s3", "s2"]
    # trimmed launches stay deduplicated
    assert launch_store.remember_launch(event(mint=None, signature="s0"), cap=3, now=NOW) is False


@pytest.mark.parametrize(
    "limit,expected",
    [(None, 50), ("abc", 50), (0, 1), (-5, 1), (10, 10), ("20", 20), (1_000, 200)],
)
def test_clamp_limit(launch_store, limit, expected):
    assert launch_store.clamp_limit(limit) == expected


def test_database_errors_surface_as_store_unavailable(launch_store):
    with patch.object(launch_store, "_session_scope", side_effect=OperationalError("SELECT", {}, Exception("locked"))):
        with pytest.raises(StoreUnavailableError):
            launch_store.recent_launches()
        with pytest.raises(StoreUnavailableError):
            launch_store.remember_launch(event(), now=NOW)
