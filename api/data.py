"""GET /api/data: unified read endpoint."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.backup import export_backup
from core.catalog import COMMON_SERVICES
from core.context import OwnerContext, require_owner
from core.exceptions import NotFoundError
from core.models import STATUS_PROGRESSION, DateRange, QuickFilter, WorkOrderStatus
from core.reporting import dashboard_stats, financial_report, quick_filter_range
from core.work_orders import filter_work_orders
from utils.timezone import now_utc, to_local


VALID_TYPES = {"customers", "vehicles", "work_orders", "settings", "transactions"}


def request_context(request: Request) -> OwnerContext:
    """Acting owner set by AuthMiddleware. MissingOwnerError (401) when absent."""
    return require_owner(getattr(request.state, "ctx", None))


def resolve_report_range(
    preset: str | None, start: date | None, end: date | None, tz_name: str
) -> DateRange:
    """Date range from a quick-filter preset, or from explicit start/end days."""
    if preset:
        try:
            quick = QuickFilter(preset)
        except ValueError:
            raise ValueError(
                f"Unknown preset '{preset}'. Valid presets: "
                f"{', '.join(q.value for q in QuickFilter)}"
            )
        return quick_filter_range(quick, to_local(now_utc(), tz_name).date())

    if start is None or end is None:
        raise ValueError("Provide 'preset' or both 'start' and 'end'")
    if start > end:
        raise ValueError("'start' must not be after 'end'")
    return DateRange(start=start, end=end)


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    gateway = services["gateway"]
    engine = services["engine"]
    customer_svc = services["customer"]
    vehicle_svc = services["vehicle"]
    guard = services["guard"]
    user_svc = services["user"]
    transaction_svc = services["transaction"]
    tz_name = services["config"].display_timezone

    # -------------------------------------------------------------------------
    # Convenience routes (must be registered before the generic /data route)
    # -------------------------------------------------------------------------

    @router.get("/data/dashboard")
    async def dashboard(request: Request):
        ctx = request_context(request)
        orders = gateway.list_work_orders(ctx)
        identity = gateway.get_workshop_identity(ctx)
        stats = dashboard_stats(
            orders,
            now_utc(),
            tz_name,
            identity.name,
            customers=gateway.list_customers(ctx),
            vehicles=gateway.list_vehicles(ctx),
        )
        return success_response(stats.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/data/reports/financial")
    async def financial(
        request: Request,
        preset: str | None = Query(None),
        start: date | None = Query(None),
        end: date | None = Query(None),
    ):
        ctx = request_context(request)
        period = resolve_report_range(preset, start, end, tz_name)
        report = financial_report(
            gateway.list_work_orders(ctx),
            period.start,
            period.end,
            tz_name,
            customers=gateway.list_customers(ctx),
        )
        return success_response(report.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/data/catalog")
    async def catalog(request: Request):
        data = [
            {"index": i, "description": entry.description, "price": str(entry.price)}
            for i, entry in enumerate(COMMON_SERVICES)
        ]
        return success_response(data).model_dump(mode="json")

    @router.get("/data/statuses")
    async def statuses(request: Request):
        """Every status with its label and stepper position (None when off the progression)."""
        data = [
            {
                "value": status.value,
                "label": status.label,
                "step": STATUS_PROGRESSION.index(status) if status in STATUS_PROGRESSION else None,
            }
            for status in WorkOrderStatus
        ]
        return success_response(data).model_dump(mode="json")

    @router.get("/data/subscription")
    async def subscription(request: Request):
        state = guard.check(request_context(request))
        return success_response(state.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/data/system-status")
    async def system_status(request: Request):
        status = gateway.system_status(request_context(request))
        return success_response(status.model_dump(mode="json")).model_dump(mode="json")

    @router.get("/data/export")
    async def export(request: Request):
        ctx = request_context(request)
        backup = export_backup(
            gateway,
            ctx,
            profile=user_svc.get(ctx),
            transactions=transaction_svc.list_all(ctx),
        )
        return success_response(backup.model_dump(mode="json")).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Generic data endpoint
    # -------------------------------------------------------------------------

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        search: str | None = Query(None),
        customer_id: str | None = Query(None),
        status: str | None = Query(None),
        include: str | None = Query(None),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        ctx = request_context(request)
        includes = set(include.split(",")) if include else set()

        if type == "customers":
            return _handle_customers(ctx, customer_svc, vehicle_svc, id, search, includes)

        if type == "vehicles":
            return _handle_vehicles(ctx, vehicle_svc, id, customer_id)

        if type == "work_orders":
            return _handle_work_orders(ctx, gateway, engine, id, status, search, includes)

        if type == "settings":
            identity = gateway.get_workshop_identity(ctx)
            return success_response(identity.model_dump(mode="json")).model_dump(mode="json")

        if type == "transactions":
            transactions = transaction_svc.list_all(ctx)
            return success_response(
                [t.model_dump(mode="json") for t in transactions]
            ).model_dump(mode="json")

    return router


def _handle_customers(ctx, customer_svc, vehicle_svc, id, search, includes):
    if id:
        customer = customer_svc.get_by_id(ctx, UUID(id))
        if customer is None:
            raise NotFoundError(f"Customer {id} not found")

        data = customer.model_dump(mode="json")
        if "vehicles" in includes:
            vehicles = vehicle_svc.list_for_customer(ctx, customer.id)
            data["vehicles"] = [v.model_dump(mode="json") for v in vehicles]

        return success_response(data).model_dump(mode="json")

    if search:
        customers = customer_svc.search(ctx, search)
    else:
        customers = customer_svc.list_all(ctx)

    return success_response(
        [c.model_dump(mode="json") for c in customers]
    ).model_dump(mode="json")


def _handle_vehicles(ctx, vehicle_svc, id, customer_id):
    if id:
        vehicle = vehicle_svc.get_by_id(ctx, UUID(id))
        if vehicle is None:
            raise NotFoundError(f"Vehicle {id} not found")
        return success_response(vehicle.model_dump(mode="json")).model_dump(mode="json")

    if customer_id:
        vehicles = vehicle_svc.list_for_customer(ctx, UUID(customer_id))
    else:
        vehicles = vehicle_svc.list_all(ctx)

    return success_response(
        [v.model_dump(mode="json") for v in vehicles]
    ).model_dump(mode="json")


def _handle_work_orders(ctx, gateway, engine, id, status, search, includes):
    if id:
        order = engine.load(ctx, UUID(id))
        data = order.model_dump(mode="json")
        data["short_code"] = order.short_code
        data["subtotal"] = str(order.subtotal)
        if "customer" in includes and order.customer_id:
            customer = gateway.get_customer(ctx, order.customer_id)
            data["customer"] = customer.model_dump(mode="json") if customer else None
        if "vehicle" in includes and order.vehicle_id:
            vehicle = gateway.get_vehicle(ctx, order.vehicle_id)
            data["vehicle"] = vehicle.model_dump(mode="json") if vehicle else None
        return success_response(data).model_dump(mode="json")

    wanted = WorkOrderStatus(status) if status else None
    orders = gateway.list_work_orders(ctx)
    if wanted is not None or search:
        orders = filter_work_orders(
            orders,
            gateway.list_customers(ctx) if search else (),
            gateway.list_vehicles(ctx) if search else (),
            status=wanted,
            search=search or "",
        )

    return success_response(
        [o.model_dump(mode="json") for o in orders]
    ).model_dump(mode="json")
