"""Application assembly: services, middleware and routers."""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.documents import create_documents_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.license import LicenseService
from auth.security_middleware import AuthMiddleware, SubscriptionMiddleware
from auth.session import SessionManager
from auth.subscription import SubscriptionGuard
from clients.postgres_client import PostgresClient
from core.config import WorkshopConfig
from core.gateway import PersistenceGateway
from core.services.transaction_service import TransactionService
from core.services.user_service import UserService
from core.work_orders import WorkOrderEngine

logger = logging.getLogger(__name__)


def build_services(
    postgres: PostgresClient,
    auth_config: AuthConfig | None = None,
    config: WorkshopConfig | None = None,
) -> dict:
    """Wire every service over one PostgresClient."""
    auth_config = auth_config or AuthConfig()
    config = config or WorkshopConfig()

    gateway = PersistenceGateway.from_postgres(postgres, config)
    users = UserService(postgres)
    transactions = TransactionService(postgres)

    return {
        "config": config,
        "gateway": gateway,
        "engine": WorkOrderEngine(gateway),
        "customer": gateway.customers,
        "vehicle": gateway.vehicles,
        "settings": gateway.settings,
        "user": users,
        "transaction": transactions,
        "guard": SubscriptionGuard(users, auth_config),
        "license": LicenseService(users, transactions, auth_config),
    }


def create_app(services: dict, session_manager: SessionManager) -> FastAPI:
    """FastAPI app with auth and subscription middleware, error handlers and routes."""
    app = FastAPI(title="Workshop Manager")

    # Starlette runs the last-added middleware first
    app.add_middleware(SubscriptionMiddleware, guard=services["guard"])
    app.add_middleware(AuthMiddleware, session_manager=session_manager)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(create_auth_router(session_manager))
    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")
    app.include_router(create_documents_router(services), prefix="/api")

    logger.info("Application assembled")
    return app


def create_production_app() -> FastAPI:
    """Build the app from Vault-provided connection URLs."""
    from clients.valkey_client import ValkeyClient
    from clients.vault_client import get_database_url, get_valkey_url

    auth_config = AuthConfig()
    postgres = PostgresClient(get_database_url())
    session_manager = SessionManager(ValkeyClient(get_valkey_url()), auth_config)
    return create_app(build_services(postgres, auth_config), session_manager)
