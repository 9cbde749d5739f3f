# dit/main_fastapi.py
# Application factory: wires the store, services and routers into one FastAPI app

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import httpx
from fastapi import FastAPI

from dit import config
from dit.config import Settings, get_settings
from dit.db.base import Database
from dit.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from dit.middleware.rate_limiter import RateLimitMiddleware, build_counter, default_rules
from dit.observability.logger import configure_logging
from dit.observability.metrics import PrometheusMiddleware, router as prometheus_router
from dit.player.catalog import load_catalog
from dit.player.service import PlayerRegistry
from dit.repositories.access_code_repository import AccessCodeRepository
from dit.repositories.comment_repository import CommentRepository
from dit.repositories.post_repository import PostRepository
from dit.repositories.session_repository import SessionRepository
from dit.repositories.track_play_repository import TrackPlayRepository
from dit.routers.analytics import router as analytics_router
from dit.routers.auth import router as auth_router
from dit.routers.chat import router as chat_router
from dit.routers.health import router as health_router
from dit.routers.player import router as player_router
from dit.routers.qr import router as qr_router
from dit.routers.social import router as social_router
from dit.services.access_gate import AccessGate
from dit.services.analytics_service import AnalyticsService
from dit.services.broker import FeedBroker
from dit.services.chat_relay import ChatRelay
from dit.services.feed_service import CommentService, LikeService, PostService
from dit.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    db: Database
    sessions: SessionStore
    gate: AccessGate
    posts: PostService
    likes: LikeService
    comments: CommentService
    broker: FeedBroker
    players: PlayerRegistry
    chat_relay: ChatRelay
    guardian_relay: ChatRelay
    analytics: AnalyticsService


def build_services(
    settings: Settings,
    database: Optional[Database] = None,
    chat_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Services:
    db = database or Database(settings.DB_URL, echo=settings.DEBUG)
    factory = db.session_factory

    posts_repo = PostRepository(factory)
    sessions = SessionStore(
        SessionRepository(factory),
        ttl=timedelta(hours=settings.SESSION_TTL_HOURS),
        max_attempts=settings.SESSION_CREATE_ATTEMPTS,
    )
    gate = AccessGate(AccessCodeRepository(factory), sessions)
    broker = FeedBroker()

    return Services(
        db=db,
        sessions=sessions,
        gate=gate,
        posts=PostService(posts_repo, gate, broker, feed_limit=settings.FEED_LIMIT),
        likes=LikeService(posts_repo),
        comments=CommentService(CommentRepository(factory), posts_repo, broker),
        broker=broker,
        players=PlayerRegistry(
            load_catalog(settings.CATALOG_PATH),
            idle_timeout=settings.SESSION_TTL_HOURS * 3600,
        ),
        chat_relay=ChatRelay(
            "chat", settings.CHAT_WEBHOOK_URL,
            timeout=settings.CHAT_TIMEOUT_SECONDS, transport=chat_transport,
        ),
        guardian_relay=ChatRelay(
            "guardian", settings.GUARDIAN_WEBHOOK_URL,
            timeout=settings.CHAT_TIMEOUT_SECONDS, transport=chat_transport,
        ),
        analytics=AnalyticsService(TrackPlayRepository(factory)),
    )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    counter=None,
    chat_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()
    services = build_services(settings, database=database, chat_transport=chat_transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config)
        stop = asyncio.Event()
        ticker = asyncio.create_task(
            services.players.run_ticker(settings.PLAYER_TICK_SECONDS, stop)
        )
        logger.info("DIT API started")
        try:
            yield
        finally:
            stop.set()
            await ticker
            await services.db.dispose()
            logger.info("DIT API stopped")

    app = FastAPI(
        title="DIT API",
        description="Access codes, sessions, social feed, chat relays and playback for the DIT album site",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services
    app.state.settings = settings

    # Last added runs outermost: error handler wraps metrics wraps the rate limiter
    app.add_middleware(
        RateLimitMiddleware,
        counter=counter or build_counter(settings),
        rules=default_rules(settings),
    )
    if settings.METRICS_ENABLED:
        app.add_middleware(PrometheusMiddleware)
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.DEBUG)

    setup_exception_handlers(app)

    app.include_router(health_router)  # Health checks at root level
    if settings.METRICS_ENABLED:
        app.include_router(prometheus_router)
    for router in (auth_router, qr_router, social_router, chat_router, analytics_router, player_router):
        app.include_router(router, prefix="/api")

    if settings.OTEL_ENABLED:
        from dit.observability.tracing import init_otel

        init_otel(app=app, engine=services.db.engine)

    return app


_app: Optional[FastAPI] = None


def get_app() -> FastAPI:
    """Build the process-wide app on first use (uvicorn entry point)."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(get_app(), host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
