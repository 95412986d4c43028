"""
Dashboard statistics and the financial report.

Pure functions over a snapshot of the owner's work orders. Revenue is
attributed to an order's revenue date (exit date if recorded, else entry
date); calendar days and months are taken in the workshop's display
timezone. Empty input yields zeroed structures, never an error.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable

from core.models import (
    Customer, DashboardStats, DateRange, FinancialReport, FinancialReportRow,
    QuickFilter, RecentOrder, RevenuePoint, StatusBucket, Vehicle, WorkOrder, WorkOrderStatus,
)
from core.models.money import CENTS, ZERO
from utils.formatting import month_label
from utils.timezone import end_of_day, month_bounds, shift_month, start_of_day, to_local

# An IN_PROGRESS order older than this is reported as delayed
DELAYED_AFTER_DAYS = 10

# Months shown in the revenue chart, ending at the current month
REVENUE_HISTORY_MONTHS = 6

# Newest orders listed on the dashboard
RECENT_ORDERS_LIMIT = 5
UNKNOWN_CUSTOMER = "Desconhecido"
UNKNOWN_VEHICLE = "Veículo"

STATUS_COLORS = {
    "Em Serviço": "#0284c7",
    "Finalizados": "#16a34a",
    "Em Orçamento": "#eab308",
    "Atrasados": "#dc2626",
}


def revenue_date(order: WorkOrder) -> datetime:
    """Exit date if recorded, else entry date."""
    return order.revenue_date


def dashboard_stats(
    orders: Iterable[WorkOrder],
    now: datetime,
    tz_name: str = "UTC",
    workshop_name: str | None = None,
    customers: Iterable[Customer] | None = None,
    vehicles: Iterable[Vehicle] | None = None,
) -> DashboardStats:
    """
    KPIs for the dashboard at instant now.

    recent_orders lists the newest orders by entry date. Customer and vehicle
    names resolve from the given collections, with placeholders when missing.

    The status distribution buckets overlap: a delayed order is counted in
    both 'Em Serviço' and 'Atrasados'.
    """
    orders = list(orders)
    local_now = to_local(now, tz_name)
    delayed_cutoff = now - timedelta(days=DELAYED_AFTER_DAYS)

    pending_quotes = 0
    in_progress = 0
    finished_total = 0
    finished_today = 0
    delayed = 0
    revenue_by_month: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)

    for order in orders:
        if order.status == WorkOrderStatus.PENDING_QUOTE:
            pending_quotes += 1
        elif order.status == WorkOrderStatus.IN_PROGRESS:
            in_progress += 1
            if order.entry_date < delayed_cutoff:
                delayed += 1

        if not order.status.counts_as_revenue:
            continue

        finished_total += 1
        local_day = to_local(revenue_date(order), tz_name)
        revenue_by_month[(local_day.year, local_day.month)] += order.total
        if local_day.date() == local_now.date():
            finished_today += 1

    history = []
    for delta in range(-(REVENUE_HISTORY_MONTHS - 1), 1):
        year, month = shift_month(local_now.year, local_now.month, delta)
        history.append(
            RevenuePoint(
                year=year,
                month=month,
                label=month_label(month),
                value=revenue_by_month.get((year, month), ZERO),
            )
        )

    distribution = [
        StatusBucket(name=name, value=value, color=STATUS_COLORS[name])
        for name, value in (
            ("Em Serviço", in_progress),
            ("Finalizados", finished_total),
            ("Em Orçamento", pending_quotes),
            ("Atrasados", delayed),
        )
    ]

    return DashboardStats(
        workshop_name=workshop_name,
        pending_quotes=pending_quotes,
        in_progress=in_progress,
        finished_total=finished_total,
        monthly_revenue=revenue_by_month.get((local_now.year, local_now.month), ZERO),
        finished_today=finished_today,
        delayed_orders=delayed,
        revenue_history=history,
        status_distribution=distribution,
        recent_orders=recent_orders(orders, customers, vehicles),
    )


def recent_orders(
    orders: Iterable[WorkOrder],
    customers: Iterable[Customer] | None = None,
    vehicles: Iterable[Vehicle] | None = None,
    limit: int = RECENT_ORDERS_LIMIT,
) -> list[RecentOrder]:
    """Newest orders first, by entry date."""
    customer_names = {c.id: c.name for c in customers or ()}
    vehicle_names = {v.id: v.display_name for v in vehicles or ()}
    newest = sorted(orders, key=lambda o: o.entry_date, reverse=True)[:limit]

    return [
        RecentOrder(
            order_id=order.id,
            short_code=order.short_code,
            status=order.status,
            entry_date=order.entry_date,
            total=order.total,
            customer_name=customer_names.get(order.customer_id, UNKNOWN_CUSTOMER),
            vehicle_name=vehicle_names.get(order.vehicle_id, UNKNOWN_VEHICLE),
        )
        for order in newest
    ]


def financial_report(
    orders: Iterable[WorkOrder],
    start: date,
    end: date,
    tz_name: str = "UTC",
    customers: Iterable[Customer] | None = None,
) -> FinancialReport:
    """
    Revenue of FINISHED/DELIVERED orders whose revenue date falls between
    start 00:00:00.000 and end 23:59:59.999 (local time), both inclusive.

    Rows keep the input order.
    """
    window_start = start_of_day(start, tz_name)
    window_end = end_of_day(end, tz_name)
    names = {c.id: c.name for c in customers or ()}

    rows = []
    for order in orders:
        if not order.status.counts_as_revenue:
            continue
        when = revenue_date(order)
        if not window_start <= when <= window_end:
            continue
        rows.append(
            FinancialReportRow(
                order_id=order.id,
                short_code=order.short_code,
                revenue_date=when,
                customer_id=order.customer_id,
                customer_name=names.get(order.customer_id),
                total=order.total,
            )
        )

    total_revenue = sum((r.total for r in rows), ZERO)
    count = len(rows)
    average = (total_revenue / count).quantize(CENTS) if count else ZERO

    return FinancialReport(
        start=start,
        end=end,
        total_revenue=total_revenue,
        count=count,
        average_ticket=average,
        rows=rows,
    )


def quick_filter_range(preset: QuickFilter | str, today: date) -> DateRange:
    """Date range for a named preset relative to today."""
    preset = QuickFilter(preset)

    if preset == QuickFilter.TODAY:
        start = end = today
    elif preset == QuickFilter.THIS_MONTH:
        start, end = month_bounds(today.year, today.month)
    else:
        year, month = shift_month(today.year, today.month, -1)
        start, end = month_bounds(year, month)

    return DateRange(start=start, end=end, label=preset.label)
