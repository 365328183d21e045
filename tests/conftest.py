import os
from datetime import date, datetime, timedelta, timezone

# journal.database reads DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from journal import models  # noqa: F401  registers tables on Base.metadata
from journal.config import Settings, get_settings
from journal.database import Base, SessionLocal, engine
from journal.main import app
from journal.models import TradeRecord
from journal.routes.insights import get_llm_transport

JWT_SECRET = "test-secret"


def make_token(user_id: str, secret: str = JWT_SECRET, expires_in: int = 3600) -> str:
    payload = {"sub": user_id, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def settings():
    return Settings(jwt_secret=JWT_SECRET)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session, settings):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_llm_transport] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    def make(user_id, **kwargs):
        return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}
    return make


@pytest.fixture
def auth_headers(headers_for):
    return headers_for("user-1")


@pytest.fixture
def trade_factory():
    counter = {"day": 0}

    def make(entry_price=100.0, exit_price=110.0, size=10.0, confidence=3,
             setup_tag="Breakout", emotion_tag="Calm", ticker="AAPL", trade_date=None, user_id="user-1"):
        counter["day"] += 1
        return TradeRecord(
            user_id=user_id,
            ticker=ticker,
            entry_price=entry_price,
            exit_price=exit_price,
            size=size,
            confidence=confidence,
            setup_tag=setup_tag,
            emotion_tag=emotion_tag,
            notes="",
            trade_date=trade_date or date(2024, 1, 1) + timedelta(days=counter["day"]),
        )

    return make
