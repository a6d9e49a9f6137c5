from __future__ import annotations

from fastapi import FastAPI, HTTPException
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blogapi.api import register_exception_handlers, router
from blogapi.auth import PasswordHasher, RateLimiter
from blogapi.auth.google import GoogleOAuthClient
from blogapi.config import Settings, load_settings
from blogapi.models import Base
from blogapi.notifications import EmailNotifier, Notifier, NullNotifier


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # one shared connection so every request sees the same in-memory database
        return create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, future=True, pool_pre_ping=True)


def build_notifier(settings: Settings) -> Notifier:
    if not settings.email_api_key:
        return NullNotifier()
    return EmailNotifier(
        api_key=settings.email_api_key,
        sender=settings.email_from,
        code_expiry_minutes=int(settings.auth.verification_code_ttl.total_seconds() // 60),
        api_url=settings.email_api_url,
    )


def build_google_client(settings: Settings) -> GoogleOAuthClient | None:
    if not settings.google_enabled:
        return None
    return GoogleOAuthClient(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        redirect_uri=settings.google_redirect_uri,
    )


def create_app(
    settings: Settings | None = None,
    notifier: Notifier | None = None,
    google_client: GoogleOAuthClient | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="Blog API", version="0.1.0")
    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url)
    app.state.session_factory = sessionmaker(bind=app.state.engine, expire_on_commit=False, future=True)
    Base.metadata.create_all(app.state.engine)
    app.state.notifier = notifier or build_notifier(settings)
    app.state.google_client = google_client or build_google_client(settings)
    app.state.password_hasher = PasswordHasher(settings.auth.password_hash_rounds)
    app.state.login_rate_limiter = RateLimiter(
        settings.auth.login_rate_limit_max, settings.auth.login_rate_limit_window_seconds
    )

    @app.get("/health")
    def health():
        try:
            with app.state.engine.connect() as connection:
                connection.execute(text("select 1"))
        except Exception as exc:
            raise HTTPException(status_code=503, detail="database_unavailable") from exc
        return {"status": "ok"}

    register_exception_handlers(app)
    app.include_router(router)
    return app
