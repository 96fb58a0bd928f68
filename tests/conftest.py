import os

# must be set before config/db are imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"

import pytest

import config
import db as db_module
from schema import Base


@pytest.fixture(autouse=True)
def cache_dir(tmp_path, monkeypatch):
    path = tmp_path / "cache"
    monkeypatch.setattr(config, "CACHE_DIR", str(path))
    return path


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=db_module.engine)
    Base.metadata.create_all(bind=db_module.engine)
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()
