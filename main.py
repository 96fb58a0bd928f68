import logging
from datetime import datetime, timezone
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, FileResponse
from pydantic import BaseModel, field_serializer
from sqlalchemy.orm import Session

import config
import pipeline
import queries
from db import SessionLocal, init_db
from errors import NotFoundError, UpstreamError
from schema import Base

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Country Currency API")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Build a simple field -> message map from validation errors
    details = {}
    for err in exc.errors():
        loc = err.get("loc", [])
        field = loc[-1] if loc else "body"
        details[str(field)] = err.get("msg")
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


@app.exception_handler(UpstreamError)
async def upstream_exception_handler(request: Request, exc: UpstreamError):
    logger.warning("Refresh aborted, %s unavailable: %s", exc.source.value, exc.reason)
    return JSONResponse(
        status_code=503,
        content={
            "error": "External data source unavailable",
            "details": f"Could not fetch data from {exc.source.value}",
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": exc.message})


@app.exception_handler(Exception)
async def internal_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# initialize DB (creates tables if missing)
init_db(Base)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # sqlite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CountryOut(BaseModel):
    id: int
    name: str
    capital: Optional[str]
    region: Optional[str]
    population: int
    currency_code: Optional[str]
    exchange_rate: Optional[float]
    estimated_gdp: Optional[float]
    flag_url: Optional[str]
    last_refreshed_at: Optional[datetime]

    class Config:
        from_attributes = True

    @field_serializer("last_refreshed_at")
    def serialize_last_refreshed_at(self, value: Optional[datetime]):
        value = as_utc(value)
        return value.isoformat() if value else None


class RefreshOut(BaseModel):
    message: str
    inserted: int
    updated: int
    total: int


class StatusOut(BaseModel):
    total_countries: int
    last_refreshed_at: Optional[str]


class DeleteOut(BaseModel):
    message: str
    name: str


@app.get("/")
def root(db: Session = Depends(get_db)):
    c = queries.get_any_country(db)
    if c is None:
        return {}
    return CountryOut.model_validate(c).model_dump(mode="json")


@app.post("/countries/refresh", response_model=RefreshOut)
def refresh_countries(db: Session = Depends(get_db)):
    result = pipeline.refresh(db)
    return RefreshOut(
        message="Country data refreshed successfully",
        inserted=result.inserted,
        updated=result.updated,
        total=result.total,
    )


@app.get("/countries", response_model=List[CountryOut])
def list_countries(
    region: Optional[str] = Query(None),
    currency: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return queries.list_countries(db, region=region, currency=currency, sort=sort)


# must be registered before /countries/{name}
@app.get("/countries/image")
def get_image(db: Session = Depends(get_db)):
    path = queries.get_summary_image_path(db)
    return FileResponse(path, media_type="image/png")


@app.get("/countries/{name}", response_model=CountryOut)
def get_country(name: str, db: Session = Depends(get_db)):
    return queries.get_country(db, name)


@app.delete("/countries/{name}", response_model=DeleteOut)
def delete_country(name: str, db: Session = Depends(get_db)):
    deleted = queries.delete_country(db, name)
    return DeleteOut(message="Country deleted successfully", name=deleted)


@app.get("/status", response_model=StatusOut)
def status(db: Session = Depends(get_db)):
    total, last = queries.get_status(db)
    last = as_utc(last)
    return StatusOut(total_countries=total, last_refreshed_at=last.isoformat() if last else None)


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
