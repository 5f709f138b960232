"""
FastAPI application factory.
create_app() is the single entry point for building the app.

The lifespan owns every collaborator: the Mongo client, the object store,
the email provider and the scheduler running both account sweeps. Shutdown
stops the scheduler, drains in-flight notifications and closes clients.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.zeptomail import ZeptoMailProvider
from infrastructure.http_client import HttpClient
from infrastructure.storage.minio_store import MinioObjectStore
from repositories.account_repository import AccountRepository
from routes.account_routes import router as account_router
from routes.admin_routes import router as admin_router
from routes.health_routes import router as health_router
from services.account_service import AccountService
from services.notifier import Notifier
from services.scheduler import Scheduler
from services.sweeps import ExpirationSweep, UnverifiedAccountSweep
from services.vip_lifecycle import VipLifecycleService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_scheduler(
    settings: AppSettings,
    expiration_sweep: ExpirationSweep,
    unverified_sweep: UnverifiedAccountSweep,
) -> Scheduler:
    lifecycle = settings.lifecycle
    scheduler = Scheduler()
    scheduler.add_job(
        expiration_sweep.name,
        expiration_sweep.run,
        timedelta(seconds=lifecycle.expiration_sweep_interval_seconds),
    )
    scheduler.add_job(
        unverified_sweep.name,
        unverified_sweep.run,
        timedelta(seconds=lifecycle.unverified_sweep_interval_seconds),
    )
    return scheduler


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, env=settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        db = mongo_client[settings.db.db_name]
        accounts = AccountRepository(db["users"])
        await accounts.ensure_indexes()

        store = MinioObjectStore(settings.storage)
        try:
            await store.ensure_bucket()
        except Exception as e:
            # Profile images degrade; the lifecycle core keeps running
            log.error("object_store_unavailable", error=str(e), error_type=type(e).__name__)

        http_client = HttpClient()
        notifier = Notifier(ZeptoMailProvider(settings.email, http_client))

        lifecycle = settings.lifecycle
        vip_service = VipLifecycleService(accounts, notifier)
        account_service = AccountService(
            accounts,
            store,
            notifier,
            admin_email=lifecycle.admin_email,
            code_ttl=timedelta(seconds=lifecycle.verification_code_ttl_seconds),
        )
        scheduler = build_scheduler(
            settings,
            ExpirationSweep(
                accounts,
                notifier,
                warning_window=timedelta(days=lifecycle.expiry_warning_days),
            ),
            UnverifiedAccountSweep(
                accounts,
                store,
                retention=timedelta(hours=lifecycle.unverified_retention_hours),
            ),
        )

        app.state.settings = settings
        app.state.mongo_client = mongo_client
        app.state.db = db
        app.state.object_store = store
        app.state.notifier = notifier
        app.state.vip_service = vip_service
        app.state.account_service = account_service
        app.state.scheduler = scheduler

        if lifecycle.scheduler_enabled:
            scheduler.start()

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await scheduler.stop()
        await notifier.drain()
        await http_client.aclose()
        await mongo_client.close()

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

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(account_router)
    app.include_router(admin_router)

    return app
