from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import declarative_base


Base = declarative_base()

METADATA_ID = 1


class Country(Base):
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    capital = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    population = Column(BigInteger, nullable=False)
    currency_code = Column(String(10), nullable=True)
    exchange_rate = Column(Float, nullable=True)
    estimated_gdp = Column(Float, nullable=True)
    flag_url = Column(String(255), nullable=True)
    last_refreshed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Country id={self.id} name={self.name!r}>"


# "Japan" and "japan" are the same country
Index("ix_countries_name_lower", func.lower(Country.name), unique=True)


class RunMetadata(Base):
    """Singleton row (id = METADATA_ID) describing the most recent refresh."""

    __tablename__ = "metadata"

    id = Column(Integer, primary_key=True, default=METADATA_ID)
    total_countries = Column(Integer, nullable=True)
    last_refreshed_at = Column(DateTime(timezone=True), nullable=True)
    summary_image_path = Column(String(255), nullable=True)
