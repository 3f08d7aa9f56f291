"""FastAPI application factory wiring the account and session services."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blulog.api.contracts import HealthResponse
from blulog.api.http_setup import register_exception_handlers, register_http_middleware
from blulog.auth.middleware import create_authenticate, create_authorize
from blulog.auth.repository import AccountRepository, AccountStore
from blulog.auth.router import create_auth_router
from blulog.auth.service import AuthService
from blulog.auth.tokens import TokenCodec
from blulog.core.config import AppConfig
from blulog.core.mongo_migrations import apply_mongo_migrations
from blulog.mail.dispatcher import EmailDispatcher, build_email_dispatcher
from blulog.users.router import UsersRouter
from blulog.users.service import UserService

LOGGER = logging.getLogger(__name__)


def resolve_data_root(config: AppConfig) -> Path:
    """Directory holding the `runtime/` file store and mail outbox."""
    if config.store.data_dir:
        return Path(config.store.data_dir).expanduser()
    return Path.cwd()


def create_app(
    config: AppConfig | None = None,
    *,
    repo: AccountStore | None = None,
    mailer: EmailDispatcher | None = None,
    data_root: Path | None = None,
) -> FastAPI:
    """Build the API app; store and mailer can be injected for tests."""
    config = config or AppConfig.from_env()
    data_root = data_root or resolve_data_root(config)
    app = FastAPI(title="Blulog API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)

    if repo is None:
        apply_mongo_migrations(config.store)
        repo = AccountRepository(data_root, config.store)
    if mailer is None:
        mailer = build_email_dispatcher(config.mail, data_root)

    auth_service = AuthService(
        repo,
        TokenCodec(config.auth),
        mailer,
        config.auth,
        client_base_url=config.client.base_url,
    )
    auth_service.bootstrap_admin_account()
    authenticate = create_authenticate(auth_service)
    authorize = create_authorize(authenticate)

    app.include_router(create_auth_router(auth_service, config.cookie, authenticate))
    app.include_router(
        UsersRouter(
            UserService(repo), authenticate=authenticate, authorize=authorize
        ).build()
    )

    @app.get("/api/health")
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    return app

