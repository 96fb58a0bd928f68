from urllib.parse import urlsplit, parse_qs, urlunsplit

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import config


def normalize_database_url(url):
    """Return (url, connect_args) ready for create_engine.

    The generic mysql:// scheme is pointed at the pure-Python pymysql driver,
    and provider query parameters such as `ssl-mode=REQUIRED` are stripped
    from the URL and translated into connect_args, since the DBAPI would
    otherwise receive them as invalid keyword arguments.
    """
    connect_args = {}
    if url.startswith("mysql://"):
        url = url.replace("mysql://", "mysql+pymysql://", 1)

    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints on a threadpool
        connect_args["check_same_thread"] = False
        return url, connect_args

    parts = urlsplit(url)
    if parts.query:
        qs = parse_qs(parts.query)
        if qs.get("ssl-mode") or qs.get("ssl_mode"):
            # an empty dict asks pymysql for TLS without a custom CA
            connect_args["ssl"] = {}
        url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
    return url, connect_args


def _is_memory_sqlite(url):
    return url in ("sqlite://", "sqlite:///:memory:")


def make_engine(url):
    url, connect_args = normalize_database_url(url)
    if _is_memory_sqlite(url):
        # every connection must see the same in-memory database
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = make_engine(config.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(Base):
    """Create tables. Call with schema.Base."""
    Base.metadata.create_all(bind=engine)
