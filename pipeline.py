import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

import service
from reconcile import reconcile
from summary import summarize

logger = logging.getLogger(__name__)

# one refresh at a time per process; separate processes are still last-write-wins
_refresh_lock = threading.Lock()


@dataclass
class RefreshResult:
    inserted: int
    updated: int
    skipped: int
    total: int
    last_refreshed_at: datetime
    image_path: Optional[str] = None


def refresh(
    db: Session,
    renderer: Optional[Callable] = None,
    now: Optional[datetime] = None,
) -> RefreshResult:
    """Fetch both upstreams, reconcile into the store and refresh the summary.

    UpstreamError propagates before the store is touched. Once reconciliation
    commits, the refresh counts as successful whatever happens to the summary.
    """
    with _refresh_lock:
        countries, rates = service.fetch_all()

        now = now or datetime.now(timezone.utc)
        total = len(countries)
        logger.info("Refreshing %d countries at %s", total, now.isoformat())

        counts = reconcile(db, countries, rates, now)
        image_path = summarize(db, total, now, renderer=renderer)

    return RefreshResult(
        inserted=counts.inserted,
        updated=counts.updated,
        skipped=counts.skipped,
        total=total,
        last_refreshed_at=now,
        image_path=image_path,
    )
