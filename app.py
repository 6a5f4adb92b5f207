"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from limits.storage import Storage
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.redis_client import create_redis_client
from infrastructure.cache.request_limiter import RequestLimiter, create_limiter_storage
from infrastructure.email.factory import build_email_provider
from infrastructure.email.protocol import EmailProvider
from infrastructure.http_client import HttpClient
from infrastructure.media.cloudinary_store import CloudinaryImageStore
from infrastructure.media.protocol import ImageStore
from repositories.account_repository import ACCOUNTS_COLLECTION, MongoAccountRepository
from repositories.protocol import AccountRepository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.auth_service import AuthService
from services.otp_service import OtpService
from services.rate_limiter import CooldownLimiter
from services.token_service import JwtSigner, TokenService
from shared.datetime_utils import Clock, minutes_ceil, utc_now
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def wire_services(
    app: FastAPI,
    settings: AppSettings,
    accounts: AccountRepository,
    email_provider: EmailProvider,
    redis_client: Optional[aioredis.Redis] = None,
    limiter_storage: Optional[Storage] = None,
    images: Optional[ImageStore] = None,
    clock: Clock = utc_now,
) -> AuthService:
    """Build the auth services over the given adapters and attach them to app.state."""
    tokens = TokenService(
        JwtSigner(settings.jwt),
        session_ttl_seconds=settings.jwt.session_token_ttl_seconds,
        access_ttl_seconds=settings.jwt.access_token_ttl_seconds,
        clock=clock,
    )
    auth_service = AuthService(
        accounts,
        tokens,
        OtpService(
            length=settings.otp.otp_length,
            ttl_seconds=settings.otp.otp_ttl_seconds,
            max_failed_attempts=settings.otp.otp_max_failed_attempts,
            clock=clock,
        ),
        CooldownLimiter(
            max_failed_attempts=settings.otp.otp_max_failed_attempts,
            cooldown_seconds=settings.otp.otp_cooldown_seconds,
            clock=clock,
        ),
        email_provider,
        images=images,
        min_password_length=settings.otp.min_password_length,
        avatar_max_bytes=settings.cloudinary.avatar_max_bytes,
        default_locale=settings.default_locale,
        clock=clock,
    )

    app.state.settings = settings
    app.state.redis = redis_client
    app.state.token_service = tokens
    app.state.auth_service = auth_service
    app.state.request_limiter = RequestLimiter(
        limiter_storage,
        limit=settings.rate_limit.auth_rate_limit,
        window_seconds=settings.rate_limit.auth_rate_window_seconds,
    )
    return auth_service


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(
        settings.env,
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
    )

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            environment=settings.env,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]

        accounts = MongoAccountRepository(app.state.db[ACCOUNTS_COLLECTION])
        await accounts.ensure_indexes()

        # Redis is optional; without it the per-IP limiter is off
        redis_client = await create_redis_client(settings.redis.redis_uri)

        http_client = HttpClient()
        app.state.http_client = http_client
        email_provider = build_email_provider(
            settings.email,
            http_client,
            app_name=settings.app_name,
            code_ttl_minutes=minutes_ceil(settings.otp.otp_ttl_seconds),
        )

        limiter_storage = (
            create_limiter_storage(settings.redis.redis_uri)
            if redis_client is not None
            else None
        )
        images = (
            CloudinaryImageStore(settings.cloudinary)
            if settings.cloudinary.is_configured
            else None
        )
        if images is None:
            log.warning("avatar_uploads_disabled", reason="cloudinary_not_configured")

        wire_services(
            app,
            settings,
            accounts,
            email_provider,
            redis_client=redis_client,
            limiter_storage=limiter_storage,
            images=images,
        )
        log.info("app_started", env=settings.env, expose_otp=settings.expose_otp)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, expose_errors=not settings.is_production)
    app.include_router(health_router)
    app.include_router(auth_router)

    return app
