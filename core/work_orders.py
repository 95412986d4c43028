"""
Work order engine.

Creation defaults, status transitions, service line edits, total
recomputation and persistence of work orders (OS).

Every mutation leaves total == max(0, sum(service prices) - discount).
compute_total() is the only function that derives it; the gateway applies
it again on every write.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable
from uuid import UUID

from core.catalog import get_catalog_service
from core.context import OwnerContext, require_owner
from core.exceptions import NotFoundError, ValidationError
from core.models import (
    Customer, ServiceItem, Vehicle, WorkOrder, WorkOrderEdit, WorkOrderStatus,
)
from core.models.money import CENTS, ZERO, to_amount
from utils.timezone import now_utc

if TYPE_CHECKING:
    from core.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

# Fields of a service line an operator may edit
EDITABLE_LINE_FIELDS = ("description", "price")

# Entering one of these stamps exit_date when it is still empty
_EXIT_STATUSES = (WorkOrderStatus.FINISHED, WorkOrderStatus.DELIVERED)


def compute_total(services: Iterable[ServiceItem], discount: Decimal) -> Decimal:
    """Net total: sum of line prices minus discount, clamped at zero."""
    subtotal = sum((s.price for s in services), ZERO)
    return max(ZERO, subtotal - discount).quantize(CENTS)


def _coerce_amount(value: Any, what: str) -> Decimal:
    try:
        return to_amount(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {what}: {e}") from e


class WorkOrderEngine:
    """
    Operations on a single work order.

    Line, discount, status and description edits mutate the given order in
    place and need no storage. Reference checks, persist and load go
    through the gateway.
    """

    def __init__(self, gateway: "PersistenceGateway"):
        self.gateway = gateway

    # Creation

    def create(self, ctx: OwnerContext | None, now: datetime | None = None) -> WorkOrder:
        """
        Start a new, unsaved order.

        Raises:
            MissingOwnerError: If there is no authenticated owner
        """
        ctx = require_owner(ctx)
        return WorkOrder(
            owner_id=ctx.owner_id,
            entry_date=now or now_utc(),
            status=WorkOrderStatus.PENDING_QUOTE,
        )

    # References

    def set_customer(self, ctx: OwnerContext, order: WorkOrder, customer_id: UUID) -> None:
        """
        Assign the customer. Always clears the vehicle.

        Raises:
            ValidationError: If the customer does not exist
        """
        if self.gateway.get_customer(ctx, customer_id) is None:
            raise ValidationError(f"Customer {customer_id} not found")
        order.customer_id = customer_id
        order.vehicle_id = None

    def set_vehicle(self, ctx: OwnerContext, order: WorkOrder, vehicle_id: UUID) -> None:
        """
        Assign the vehicle.

        Raises:
            ValidationError: If the vehicle does not exist or belongs to
                another customer than the order's
        """
        if order.customer_id is None:
            raise ValidationError("Select a customer before the vehicle")
        vehicle = self.gateway.get_vehicle(ctx, vehicle_id)
        if vehicle is None:
            raise ValidationError(f"Vehicle {vehicle_id} not found")
        if vehicle.customer_id != order.customer_id:
            raise ValidationError(
                f"Vehicle {vehicle.plate} does not belong to the order's customer"
            )
        order.vehicle_id = vehicle_id

    # Service lines

    def add_service_line(
        self, order: WorkOrder, description: str = "", price: Any = ZERO
    ) -> ServiceItem:
        """Append a line with a fresh id. Blank price means zero."""
        item = ServiceItem(
            description=description or "",
            price=_coerce_amount(price, "price"),
        )
        order.services.append(item)
        self.recompute_total(order)
        return item

    def add_catalog_service(self, order: WorkOrder, catalog_index: int) -> ServiceItem:
        """Append a line copied from the common services catalog."""
        entry = get_catalog_service(catalog_index)
        return self.add_service_line(order, entry.description, entry.price)

    def update_service_line(self, order: WorkOrder, index: int, field: str, value: Any) -> ServiceItem:
        """
        Change one field of one line.

        Raises:
            IndexError: If index is not a position in order.services
            ValidationError: On an unknown field or a malformed/negative price
        """
        if not 0 <= index < len(order.services):
            raise IndexError(f"Service line {index} out of range")
        if field not in EDITABLE_LINE_FIELDS:
            raise ValidationError(f"Field '{field}' is not editable on a service line")

        item = order.services[index]
        if field == "price":
            item.price = _coerce_amount(value, "price")
        else:
            item.description = str(value or "")

        self.recompute_total(order)
        return item

    def remove_service_line(self, order: WorkOrder, index: int) -> ServiceItem:
        """
        Remove one line; the others keep their relative order.

        Raises:
            IndexError: If index is not a position in order.services
        """
        if not 0 <= index < len(order.services):
            raise IndexError(f"Service line {index} out of range")
        item = order.services.pop(index)
        self.recompute_total(order)
        return item

    # Order fields

    def set_discount(self, order: WorkOrder, value: Any) -> Decimal:
        """
        Set a flat discount. Blank means zero; there is no upper bound.

        Raises:
            ValidationError: If value is malformed or negative
        """
        order.discount = _coerce_amount(value, "discount")
        return self.recompute_total(order)

    def set_status(
        self, order: WorkOrder, status: WorkOrderStatus | str, now: datetime | None = None
    ) -> None:
        """
        Move to any status. Entering FINISHED or DELIVERED stamps exit_date
        when it is still empty.

        Raises:
            ValidationError: If status is not a known status
        """
        try:
            status = WorkOrderStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown status: {status!r}") from e

        if status in _EXIT_STATUSES and order.exit_date is None:
            order.exit_date = now or now_utc()
        order.status = status

    def set_description(self, order: WorkOrder, text: str | None) -> None:
        order.description = text or ""

    def recompute_total(self, order: WorkOrder) -> Decimal:
        order.total = compute_total(order.services, order.discount)
        return order.total

    # Batch edits

    def apply_edit(self, ctx: OwnerContext, order: WorkOrder, edit: WorkOrderEdit) -> WorkOrder:
        """
        Apply a batch of edits to a copy of order.

        Either every edit applies or the ValidationError propagates and the
        caller keeps the untouched original.
        """
        draft = order.model_copy(deep=True)

        if edit.customer_id is not None and edit.customer_id != draft.customer_id:
            self.set_customer(ctx, draft, edit.customer_id)
        if edit.vehicle_id is not None and edit.vehicle_id != draft.vehicle_id:
            self.set_vehicle(ctx, draft, edit.vehicle_id)
        if edit.services is not None:
            draft.services = [s.model_copy() for s in edit.services]
        if edit.discount is not None:
            draft.discount = edit.discount
        if edit.description is not None:
            self.set_description(draft, edit.description)
        if edit.exit_date is not None:
            draft.exit_date = edit.exit_date
        if edit.status is not None:
            self.set_status(draft, edit.status)
        if edit.notes is not None:
            draft.notes = edit.notes
        if edit.payment_method is not None:
            draft.payment_method = edit.payment_method

        self.recompute_total(draft)
        return draft

    # Storage

    def persist(self, ctx: OwnerContext, order: WorkOrder) -> WorkOrder:
        """
        Save the order. The first save assigns id and entry_date.

        Raises:
            ValidationError: If customer or vehicle is not set
        """
        ctx = require_owner(ctx)
        if order.customer_id is None:
            raise ValidationError("A customer is required to save the work order")
        if order.vehicle_id is None:
            raise ValidationError("A vehicle is required to save the work order")

        draft = order.model_copy(deep=True)
        self.recompute_total(draft)
        saved = self.gateway.upsert_work_order(ctx, draft)
        logger.info(f"Work order {saved.short_code} persisted")
        return saved

    def load(self, ctx: OwnerContext, order_id: UUID) -> WorkOrder:
        """
        Open an existing order for editing.

        Raises:
            NotFoundError: If the order does not exist for this owner
        """
        order = self.gateway.get_work_order(ctx, order_id)
        if order is None:
            raise NotFoundError(f"Work order {order_id} not found")
        return order

    def save(self, ctx: OwnerContext, order_id: UUID | None, edit: WorkOrderEdit) -> WorkOrder:
        """Load (or create) an order, apply the edit batch and persist it."""
        order = self.load(ctx, order_id) if order_id is not None else self.create(ctx)
        return self.persist(ctx, self.apply_edit(ctx, order, edit))


def filter_work_orders(
    orders: Iterable[WorkOrder],
    customers: Iterable[Customer] = (),
    vehicles: Iterable[Vehicle] = (),
    status: WorkOrderStatus | str | None = None,
    search: str = "",
) -> list[WorkOrder]:
    """
    List-view filter.

    status is an exact match. search is case-insensitive and matches the
    customer name, the vehicle as 'model (PLATE)', or part of the order id.
    """
    customer_names = {c.id: c.name.lower() for c in customers}
    vehicle_labels = {v.id: f"{v.model or ''} ({v.plate})".lower() for v in vehicles}
    term = (search or "").strip().lower()
    wanted = WorkOrderStatus(status) if status else None

    result = []
    for order in orders:
        if wanted is not None and order.status != wanted:
            continue
        if term:
            haystack = (
                customer_names.get(order.customer_id, ""),
                vehicle_labels.get(order.vehicle_id, ""),
                str(order.id or "").lower(),
            )
            if not any(term in text for text in haystack):
                continue
        result.append(order)
    return result
