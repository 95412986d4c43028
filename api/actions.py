"""POST /api/actions: unified mutation endpoint."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from api.data import request_context
from auth.types import RedeemRequest
from core.models import (
    CustomerCreate, CustomerUpdate,
    VehicleCreate, VehicleUpdate,
    WorkOrderEdit,
    WorkshopSettingsUpdate,
    UserCreate,
)


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


# Domains reachable with an expired subscription
UNGATED_DOMAINS = {"subscription", "profile"}


def _required(data: dict, field: str, pop: bool = False):
    """Value of a mandatory field. ValueError (400) names it when missing."""
    if data.get(field) in (None, ""):
        raise ValueError(f"'{field}' is required")
    return data.pop(field) if pop else data[field]


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    guard = services["guard"]

    handlers = {
        "customer": CustomerHandler(services["customer"]),
        "vehicle": VehicleHandler(services["vehicle"]),
        "work_order": WorkOrderHandler(services["engine"]),
        "settings": SettingsHandler(services["settings"]),
        "subscription": SubscriptionHandler(services["license"]),
        "profile": ProfileHandler(services["user"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        ctx = request_context(request)
        if body.domain not in UNGATED_DOMAINS:
            guard.require_access(ctx)

        method = getattr(handler, f"_handle_{body.action}")
        result = method(ctx, body.data)
        return success_response(result).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class CustomerHandler:
    ALLOWED_ACTIONS = {"create", "update"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, ctx, data: dict):
        customer = self.service.create(ctx, CustomerCreate(**data))
        return customer.model_dump(mode="json")

    def _handle_update(self, ctx, data: dict):
        customer_id = UUID(_required(data, "id", pop=True))
        customer = self.service.update(ctx, customer_id, CustomerUpdate(**data))
        return customer.model_dump(mode="json")


class VehicleHandler:
    ALLOWED_ACTIONS = {"create", "update"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, ctx, data: dict):
        vehicle = self.service.create(ctx, VehicleCreate(**data))
        return vehicle.model_dump(mode="json")

    def _handle_update(self, ctx, data: dict):
        vehicle_id = UUID(_required(data, "id", pop=True))
        vehicle = self.service.update(ctx, vehicle_id, VehicleUpdate(**data))
        return vehicle.model_dump(mode="json")


class WorkOrderHandler:
    ALLOWED_ACTIONS = {"save", "set_status"}

    def __init__(self, engine):
        self.engine = engine

    def _handle_save(self, ctx, data: dict):
        """Create (no id) or edit an order from a batch of field edits."""
        raw_id = data.pop("id", None)
        order_id = UUID(raw_id) if raw_id else None
        order = self.engine.save(ctx, order_id, WorkOrderEdit(**data))
        return order.model_dump(mode="json")

    def _handle_set_status(self, ctx, data: dict):
        order = self.engine.load(ctx, UUID(_required(data, "id")))
        self.engine.set_status(order, _required(data, "status"))
        saved = self.engine.persist(ctx, order)
        return saved.model_dump(mode="json")


class SettingsHandler:
    ALLOWED_ACTIONS = {"save"}

    def __init__(self, service):
        self.service = service

    def _handle_save(self, ctx, data: dict):
        settings = self.service.update(ctx, WorkshopSettingsUpdate(**data))
        return settings.model_dump(mode="json")


class SubscriptionHandler:
    ALLOWED_ACTIONS = {"redeem", "activate_trial"}

    def __init__(self, license_service):
        self.license_service = license_service

    def _handle_redeem(self, ctx, data: dict):
        request = RedeemRequest(**data)
        user = self.license_service.redeem(ctx, request.code)
        return user.model_dump(mode="json")

    def _handle_activate_trial(self, ctx, data: dict):
        user = self.license_service.activate_trial(ctx)
        return user.model_dump(mode="json")


class ProfileHandler:
    ALLOWED_ACTIONS = {"register"}

    def __init__(self, service):
        self.service = service

    def _handle_register(self, ctx, data: dict):
        user = self.service.register(ctx, UserCreate(**data))
        return user.model_dump(mode="json")
