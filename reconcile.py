"""Merge a fetched batch of countries into the store.

Each source record is matched to an existing row by case-insensitive name.
Matches are updated in place (the row id never changes); everything else is
inserted. Every row touched by one batch gets the same `now` timestamp, so
"rows from the latest refresh" is simply `last_refreshed_at == metadata.last_refreshed_at`.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy import func
from sqlalchemy.orm import Session

from gdp import estimate_gdp
from schema import Country

logger = logging.getLogger(__name__)


class SourceCurrency(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None


class SourceCountry(BaseModel):
    name: str
    capital: Optional[str] = None
    region: Optional[str] = None
    population: int = Field(ge=0)
    flag: Optional[str] = None
    currencies: Optional[List[SourceCurrency]] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @property
    def currency_code(self) -> Optional[str]:
        if not self.currencies:
            return None
        return self.currencies[0].code or None


@dataclass
class ReconcileResult:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


def find_by_name(db: Session, name: str) -> Optional[Country]:
    return db.query(Country).filter(func.lower(Country.name) == func.lower(name)).first()


def _lookup_rate(rates: Dict[str, float], code: Optional[str]) -> Optional[float]:
    if not code:
        return None
    value = rates.get(code)
    if value is None:
        return None
    try:
        rate = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric rate for %s: %r", code, value)
        return None
    # a zero rate is as good as missing
    return rate or None


def _apply(country: Country, record: SourceCountry, rate, gdp, now: datetime):
    country.capital = record.capital or None
    country.region = record.region or None
    country.population = record.population
    country.currency_code = record.currency_code
    country.exchange_rate = rate
    country.estimated_gdp = gdp
    country.flag_url = record.flag or None
    country.last_refreshed_at = now


def reconcile(db: Session, source_countries: Iterable[dict], rates: Dict[str, float], now: datetime) -> ReconcileResult:
    """Insert or update every source record, in order, in one transaction.

    Records failing validation (missing name, missing or negative population)
    are skipped and logged. A store error rolls the whole batch back and is
    re-raised.
    """
    result = ReconcileResult()
    try:
        for raw in source_countries:
            try:
                record = SourceCountry.model_validate(raw)
            except ValidationError as e:
                result.skipped += 1
                label = raw.get("name") if isinstance(raw, dict) else raw
                logger.warning("Skipping malformed country record %r: %s", label, e.errors())
                continue

            code = record.currency_code
            rate = _lookup_rate(rates, code)
            gdp = estimate_gdp(record.population, rate, code)

            existing = find_by_name(db, record.name)
            if existing is not None:
                _apply(existing, record, rate, gdp, now)
                result.updated += 1
            else:
                country = Country(name=record.name)
                _apply(country, record, rate, gdp, now)
                db.add(country)
                # later records in this batch must see the new row
                db.flush()
                result.inserted += 1

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Reconciled batch: inserted=%d updated=%d skipped=%d",
        result.inserted, result.updated, result.skipped,
    )
    return result
