import os
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from errors import NotFoundError
from reconcile import find_by_name
from schema import Country, METADATA_ID, RunMetadata

SORT_COLUMNS = {
    "name": Country.name,
    "population": Country.population,
    "gdp": Country.estimated_gdp,
    "metric": Country.estimated_gdp,
}
DEFAULT_SORT = ("name", "asc")


def parse_sort(sort: Optional[str]) -> Tuple[str, str]:
    """Split `<field>_<asc|desc>`; anything unrecognised falls back to name_asc."""
    if not sort:
        return DEFAULT_SORT
    field, _, direction = sort.strip().lower().rpartition("_")
    if field not in SORT_COLUMNS or direction not in ("asc", "desc"):
        return DEFAULT_SORT
    return field, direction


def list_countries(
    db: Session,
    region: Optional[str] = None,
    currency: Optional[str] = None,
    sort: Optional[str] = None,
) -> List[Country]:
    q = db.query(Country)
    if region:
        q = q.filter(Country.region == region)
    if currency:
        q = q.filter(Country.currency_code == currency)

    field, direction = parse_sort(sort)
    column = SORT_COLUMNS[field]
    q = q.order_by(column.desc() if direction == "desc" else column.asc(), Country.id.asc())

    rows = q.all()
    if not rows:
        raise NotFoundError("No countries found matching the criteria")
    return rows


def get_country(db: Session, name: str) -> Country:
    country = find_by_name(db, name)
    if country is None:
        raise NotFoundError()
    return country


def delete_country(db: Session, name: str) -> str:
    """Delete by case-insensitive name; returns the stored spelling."""
    country = get_country(db, name)
    canonical = country.name
    db.delete(country)
    db.commit()
    return canonical


def get_any_country(db: Session) -> Optional[Country]:
    return db.query(Country).first()


def get_status(db: Session) -> Tuple[int, Optional[datetime]]:
    meta = db.get(RunMetadata, METADATA_ID)
    if meta is None:
        return 0, None
    return meta.total_countries or 0, meta.last_refreshed_at


def get_summary_image_path(db: Session) -> str:
    meta = db.get(RunMetadata, METADATA_ID)
    path = meta.summary_image_path if meta else None
    if not path or not os.path.exists(path):
        raise NotFoundError("Summary image not found")
    return path
