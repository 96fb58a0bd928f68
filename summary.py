import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

import imaging
from schema import Country, METADATA_ID, RunMetadata

logger = logging.getLogger(__name__)

TOP_N = 5


def top_countries(db: Session, limit: int = TOP_N) -> List[Country]:
    # countries without an estimate are left out of the ranking entirely
    return (
        db.query(Country)
        .filter(Country.estimated_gdp.isnot(None))
        .order_by(Country.estimated_gdp.desc(), Country.id.asc())
        .limit(limit)
        .all()
    )


def upsert_metadata(db: Session, total: int, now: datetime, image_path: Optional[str] = None) -> RunMetadata:
    """Create or overwrite the singleton metadata row and commit.

    The image path is only touched when a new one is given, so a failed
    render keeps the previous image.
    """
    meta = db.get(RunMetadata, METADATA_ID)
    if meta is None:
        meta = RunMetadata(id=METADATA_ID)
        db.add(meta)
    meta.total_countries = total
    meta.last_refreshed_at = now
    if image_path is not None:
        meta.summary_image_path = image_path
    db.commit()
    return meta


def summarize(
    db: Session,
    total: int,
    now: datetime,
    renderer: Optional[Callable] = None,
) -> Optional[str]:
    """Rank, render and record the run. Never raises.

    Runs after the reconciliation batch has committed; nothing here can undo
    it. Returns the image path when rendering succeeded.
    """
    renderer = renderer or imaging.render_summary_image
    image_path = None
    try:
        top = top_countries(db)
        image_path = renderer(total, top, now)
    except Exception:
        db.rollback()
        logger.exception("Failed to generate summary image")
        image_path = None

    try:
        upsert_metadata(db, total, now, image_path)
    except Exception:
        db.rollback()
        logger.exception("Failed to update run metadata")

    return image_path
