"""
Launch store — SQLAlchemy-backed seen-set and bounded list of recent launches.

Uses PUMPWATCH_DB_URL / DATABASE_URL when set; otherwise SQLite from
PUMPWATCH_DB_PATH (default pumpwatch.db). Launches are deduplicated by
mint (or signature when the mint is unknown) against a persisted seen-set,
and the launch list keeps only the newest LAUNCH_LIST_CAP rows.
"""

from __future__ import annotations

import json
import time
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Column, Integer, String, Text, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend_pumpwatch.config.env import get_database_url
from backend_pumpwatch.config.settings import get_settings
from backend_pumpwatch.core.exceptions import StoreUnavailableError
from backend_pumpwatch.pumpwatch_logging import get_logger
from backend_pumpwatch.solana_listener.models import LaunchEvent
from backend_pumpwatch.solana_listener.parser import dedupe_key

logger = get_logger(__name__)

Base = declarative_base()

DEFAULT_FEED_LIMIT = 50
MAX_FEED_LIMIT = 200


class SeenLaunch(Base):
    """Dedupe key (mint:<mint> or sig:<signature>) of every launch ever stored."""

    __tablename__ = "seen_launches"

    key = Column(String(128), primary_key=True)
    first_seen = Column(Integer, nullable=False)  # Unix


class StoredLaunch(Base):
    """One launch feed item; newest rows have the highest id."""

    __tablename__ = "launches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dedupe_key = Column(String(128), unique=True, nullable=False, index=True)
    mint = Column(String(64), nullable=True, index=True)
    signature = Column(String(128), nullable=True)
    payload = Column(Text, nullable=False)  # LaunchEvent.to_dict() JSON
    received_at = Column(Integer, nullable=False, index=True)  # Unix

    def to_dict(self) -> dict[str, Any]:
        item = json.loads(self.payload)
        item["receivedAt"] = self.received_at
        return item


_engine = None
_SessionLocal: sessionmaker | None = None


def _get_engine():
    """Create or return cached engine."""
    global _engine
    if _engine is None:
        url = get_database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        logger.info("launch_store_engine", url=url.split("?")[0].split("//")[-1])
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
    return _SessionLocal


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Context manager for a single session. Commits on success, rolls back on error."""
    factory = _get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create launch store tables if they do not exist. Safe to call on every startup."""
    try:
        Base.metadata.create_all(bind=_get_engine())
        logger.info("launch_store_init_db", url=get_database_url().split("?")[0].split("//")[-1])
    except SQLAlchemyError as e:
        logger.exception("launch_store_init_db_failed", error=str(e))
        raise StoreUnavailableError(f"cannot initialize launch store: {e}") from e


def _trim(session: Session, cap: int) -> int:
    """Delete everything but the newest `cap` launches. Returns rows deleted."""
    cutoff = (
        session.query(StoredLaunch.id)
        .order_by(StoredLaunch.id.desc())
        .offset(cap)
        .limit(1)
        .scalar()
    )
    if cutoff is None:
        return 0
    return session.query(StoredLaunch).filter(StoredLaunch.id <= cutoff).delete(synchronize_session=False)


def remember_launch(event: LaunchEvent, *, cap: int | None = None, now: float | None = None) -> bool:
    """
    Store a launch unless its dedupe key was seen before.

    Returns True when stored; False for duplicates and for events with
    neither mint nor signature. Raises StoreUnavailableError on database errors.
    """
    key = dedupe_key(event)
    if key is None:
        logger.debug("launch_store_skip_unkeyed")
        return False
    cap = get_settings().launch_list_cap if cap is None else cap
    received_at = int(time.time() if now is None else now)
    try:
        with _session_scope() as session:
            if session.get(SeenLaunch, key) is not None:
                return False
            session.add(SeenLaunch(key=key, first_seen=received_at))
            session.add(
                StoredLaunch(
                    dedupe_key=key,
                    mint=event.mint,
                    signature=event.signature,
                    payload=json.dumps(event.to_dict()),
                    received_at=received_at,
                )
            )
            session.flush()
            trimmed = _trim(session, cap)
        logger.info("launch_stored", key=key, trimmed=trimmed)
        return True
    except IntegrityError:
        logger.info("launch_already_stored", key=key)
        return False
    except SQLAlchemyError as e:
        logger.exception("launch_store_write_failed", key=key, error=str(e))
        raise StoreUnavailableError(f"cannot store launch: {e}") from e


def clamp_limit(limit: Any, default: int = DEFAULT_FEED_LIMIT) -> int:
    """Parse and clamp a feed limit to [1, MAX_FEED_LIMIT]."""
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return default
    return max(1, min(MAX_FEED_LIMIT, value))


def recent_launches(limit: int = DEFAULT_FEED_LIMIT) -> list[dict[str, Any]]:
    """Newest stored launches first, as feed item dicts."""
    try:
        with _session_scope() as session:
            rows = session.query(StoredLaunch).order_by(StoredLaunch.id.desc()).limit(clamp_limit(limit)).all()
            return [r.to_dict() for r in rows]
    except SQLAlchemyError as e:
        logger.exception("launch_store_read_failed", error=str(e))
        raise StoreUnavailableError(f"cannot read launch store: {e}") from e


def count_launches() -> int:
    try:
        with _session_scope() as session:
            return session.query(StoredLaunch).count()
    except SQLAlchemyError as e:
        logger.exception("launch_store_read_failed", error=str(e))
        raise StoreUnavailableError(f"cannot read launch store: {e}") from e


def reset_engine_for_test() -> None:
    """
    Clear cached engine and session factory. For tests only; use with a new PUMPWATCH_DB_PATH.
    """
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
