"""GET /api/documents: printable PDFs."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import document_response
from api.data import request_context, resolve_report_range
from core.documents import render_financial_report, render_work_order
from core.reporting import financial_report


def create_documents_router(services: dict) -> APIRouter:
    router = APIRouter()

    gateway = services["gateway"]
    engine = services["engine"]
    tz_name = services["config"].display_timezone

    @router.get("/documents/work-orders/{order_id}")
    async def work_order_document(request: Request, order_id: UUID):
        ctx = request_context(request)
        order = engine.load(ctx, order_id)
        customer = gateway.get_customer(ctx, order.customer_id) if order.customer_id else None
        vehicle = gateway.get_vehicle(ctx, order.vehicle_id) if order.vehicle_id else None
        document = render_work_order(
            order, customer, vehicle, gateway.get_workshop_identity(ctx), tz_name
        )
        return document_response(document)

    @router.get("/documents/financial-report")
    async def financial_report_document(
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
        document = render_financial_report(report, gateway.get_workshop_identity(ctx), tz_name)
        return document_response(document)

    return router
