"""Tests for dashboard statistics and the financial report."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.models import QuickFilter, WorkOrderStatus
from core.reporting import (
    DELAYED_AFTER_DAYS, RECENT_ORDERS_LIMIT, dashboard_stats, financial_report,
    quick_filter_range, recent_orders,
)
from factories import NOW, make_customer, make_order, make_vehicle

SP = "America/Sao_Paulo"


def finished(price, when, status=WorkOrderStatus.FINISHED, **overrides):
    return make_order(prices=[price], status=status, entry_date=when, exit_date=when, **overrides)


class TestDashboardStats:
    """Tests for dashboard_stats()."""

    def test_empty_input_is_zeroed(self):
        """No orders yields zeros and a six-month history."""
        stats = dashboard_stats([], NOW, SP)

        assert stats.pending_quotes == 0
        assert stats.in_progress == 0
        assert stats.finished_total == 0
        assert stats.monthly_revenue == Decimal("0")
        assert stats.finished_today == 0
        assert stats.delayed_orders == 0
        assert len(stats.revenue_history) == 6
        assert all(point.value == Decimal("0") for point in stats.revenue_history)
        assert [b.value for b in stats.status_distribution] == [0, 0, 0, 0]

    def test_history_ends_at_current_month(self):
        """History runs oldest to newest across the year boundary."""
        stats = dashboard_stats([], NOW, SP)

        labels = [p.label for p in stats.revenue_history]
        assert labels == ["Out", "Nov", "Dez", "Jan", "Fev", "Mar"]
        assert (stats.revenue_history[0].year, stats.revenue_history[0].month) == (2023, 10)
        assert (stats.revenue_history[-1].year, stats.revenue_history[-1].month) == (2024, 3)

    def test_finished_and_delayed_scenario(self):
        """A finished 600 order and a 15-day-old in-progress order."""
        orders = [
            make_order(
                prices=["600"], status=WorkOrderStatus.FINISHED,
                entry_date=NOW - timedelta(days=5),
            ),
            make_order(prices=["80"], status=WorkOrderStatus.IN_PROGRESS, entry_date=NOW - timedelta(days=15)),
        ]

        stats = dashboard_stats(orders, NOW, SP)

        assert stats.monthly_revenue == Decimal("600")
        assert stats.finished_total == 1
        assert stats.in_progress == 1
        assert stats.delayed_orders == 1

    def test_delayed_threshold(self):
        """Exactly at the threshold is not delayed yet."""
        orders = [
            make_order(status=WorkOrderStatus.IN_PROGRESS, entry_date=NOW - timedelta(days=DELAYED_AFTER_DAYS)),
            make_order(status=WorkOrderStatus.IN_PROGRESS, entry_date=NOW - timedelta(days=DELAYED_AFTER_DAYS, seconds=1)),
        ]
        assert dashboard_stats(orders, NOW, SP).delayed_orders == 1

    def test_only_in_progress_can_be_delayed(self):
        """Old quotes are not delayed."""
        orders = [make_order(status=WorkOrderStatus.PENDING_QUOTE, entry_date=NOW - timedelta(days=40))]

        stats = dashboard_stats(orders, NOW, SP)

        assert stats.delayed_orders == 0
        assert stats.pending_quotes == 1

    def test_distribution_buckets_overlap(self):
        """A delayed order is counted in both 'Em Serviço' and 'Atrasados'."""
        orders = [make_order(status=WorkOrderStatus.IN_PROGRESS, entry_date=NOW - timedelta(days=30))]

        buckets = {b.name: b.value for b in dashboard_stats(orders, NOW, SP).status_distribution}

        assert buckets == {"Em Serviço": 1, "Finalizados": 0, "Em Orçamento": 0, "Atrasados": 1}

    def test_delivered_counts_as_revenue(self):
        stats = dashboard_stats([finished("250", NOW, status=WorkOrderStatus.DELIVERED)], NOW, SP)
        assert stats.monthly_revenue == Decimal("250")
        assert stats.finished_total == 1

    def test_canceled_ignored(self):
        stats = dashboard_stats([finished("250", NOW, status=WorkOrderStatus.CANCELED)], NOW, SP)
        assert stats.monthly_revenue == Decimal("0")
        assert stats.finished_total == 0

    def test_revenue_uses_exit_date(self):
        """Revenue lands in the exit month, not the entry month."""
        order = make_order(
            prices=["300"], status=WorkOrderStatus.FINISHED,
            entry_date=datetime(2024, 2, 20, 12, tzinfo=timezone.utc),
            exit_date=datetime(2024, 3, 2, 12, tzinfo=timezone.utc),
        )

        stats = dashboard_stats([order], NOW, SP)

        assert stats.monthly_revenue == Decimal("300")
        assert stats.revenue_history[-2].value == Decimal("0")

    def test_month_taken_in_local_timezone(self):
        """01/03 02:00 UTC is still February in São Paulo."""
        order = finished("100", datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc))

        stats = dashboard_stats([order], NOW, SP)

        assert stats.monthly_revenue == Decimal("0")
        assert stats.revenue_history[-2].label == "Fev"
        assert stats.revenue_history[-2].value == Decimal("100")

    def test_history_sums_per_month(self):
        orders = [
            finished("100", datetime(2023, 12, 10, 12, tzinfo=timezone.utc)),
            finished("50.50", datetime(2023, 12, 20, 12, tzinfo=timezone.utc)),
            finished("999", datetime(2023, 9, 20, 12, tzinfo=timezone.utc)),
        ]

        history = dashboard_stats(orders, NOW, SP).revenue_history

        assert history[2].label == "Dez"
        assert history[2].value == Decimal("150.50")
        assert sum(p.value for p in history) == Decimal("150.50")

    def test_finished_today(self):
        orders = [
            finished("10", NOW - timedelta(hours=1)),
            finished("10", NOW - timedelta(days=1)),
        ]
        assert dashboard_stats(orders, NOW, SP).finished_today == 1

    def test_workshop_name_passthrough(self):
        assert dashboard_stats([], NOW, SP, workshop_name="Oficina X").workshop_name == "Oficina X"


class TestRecentOrders:
    """Tests for the dashboard's newest-orders list."""

    def test_newest_five_by_entry_date(self):
        orders = [make_order(entry_date=NOW - timedelta(days=d)) for d in (3, 0, 6, 1, 5, 2, 4)]

        recent = recent_orders(orders)

        assert len(recent) == RECENT_ORDERS_LIMIT
        assert [r.entry_date for r in recent] == [NOW - timedelta(days=d) for d in range(5)]

    def test_resolves_names(self):
        maria = make_customer("Maria")
        uno = make_vehicle(maria, plate="ABC1D23")
        order = make_order(prices=["150"], customer_id=maria.id, vehicle_id=uno.id)

        entry = recent_orders([order], [maria], [uno])[0]

        assert entry.customer_name == "Maria"
        assert entry.vehicle_name == "Fiat Uno (ABC1D23)"
        assert entry.short_code == order.short_code
        assert entry.total == Decimal("150")

    def test_missing_references_use_placeholders(self):
        entry = recent_orders([make_order(customer_id=None, vehicle_id=None)])[0]

        assert entry.customer_name == "Desconhecido"
        assert entry.vehicle_name == "Veículo"

    def test_included_in_dashboard(self):
        maria = make_customer("Maria")
        order = make_order(customer_id=maria.id)

        stats = dashboard_stats([order], NOW, SP, customers=[maria])

        assert [r.order_id for r in stats.recent_orders] == [order.id]
        assert stats.recent_orders[0].customer_name == "Maria"

    def test_empty(self):
        assert dashboard_stats([], NOW, SP).recent_orders == []


class TestFinancialReport:
    """Tests for financial_report()."""

    def test_empty_report(self):
        report = financial_report([], date(2024, 3, 1), date(2024, 3, 31), SP)

        assert report.total_revenue == Decimal("0")
        assert report.count == 0
        assert report.average_ticket == Decimal("0")
        assert report.rows == []

    def test_end_day_is_inclusive(self):
        """An order at 23:59 local on the end day is included."""
        late = datetime(2024, 4, 1, 2, 59, tzinfo=timezone.utc)  # 31/03 23:59 in São Paulo
        early = datetime(2024, 3, 1, 3, 0, tzinfo=timezone.utc)  # 01/03 00:00 in São Paulo
        outside = datetime(2024, 4, 1, 3, 0, tzinfo=timezone.utc)

        report = financial_report(
            [finished("100", late), finished("200", early), finished("400", outside)],
            date(2024, 3, 1), date(2024, 3, 31), SP,
        )

        assert report.count == 2
        assert report.total_revenue == Decimal("300")

    def test_only_revenue_statuses(self):
        orders = [
            finished("100", NOW),
            finished("100", NOW, status=WorkOrderStatus.DELIVERED),
            finished("100", NOW, status=WorkOrderStatus.IN_PROGRESS),
            finished("100", NOW, status=WorkOrderStatus.CANCELED),
        ]
        assert financial_report(orders, date(2024, 3, 1), date(2024, 3, 31), SP).count == 2

    def test_average_ticket_rounded(self):
        orders = [finished("100", NOW), finished("100", NOW), finished("101", NOW)]

        report = financial_report(orders, date(2024, 3, 15), date(2024, 3, 15), SP)

        assert report.total_revenue == Decimal("301")
        assert report.average_ticket == Decimal("100.33")

    def test_rows_keep_input_order_and_names(self):
        maria = make_customer("Maria")
        first = finished("10", NOW, customer_id=maria.id)
        second = finished("20", NOW - timedelta(days=2))

        report = financial_report([first, second], date(2024, 3, 1), date(2024, 3, 31), SP, customers=[maria])

        assert [r.order_id for r in report.rows] == [first.id, second.id]
        assert report.rows[0].customer_name == "Maria"
        assert report.rows[1].customer_name is None
        assert report.rows[0].short_code == first.short_code


class TestQuickFilterRange:
    """Tests for quick_filter_range()."""

    def test_today(self):
        result = quick_filter_range(QuickFilter.TODAY, date(2024, 3, 15))
        assert (result.start, result.end) == (date(2024, 3, 15), date(2024, 3, 15))
        assert result.label == "Hoje"

    def test_this_month_leap_year(self):
        result = quick_filter_range("this_month", date(2024, 2, 10))
        assert (result.start, result.end) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_last_month_in_january(self):
        """Last month from January is December of the previous year."""
        result = quick_filter_range(QuickFilter.LAST_MONTH, date(2024, 1, 10))

        assert (result.start, result.end) == (date(2023, 12, 1), date(2023, 12, 31))
        assert result.label == "Mês Passado"

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            quick_filter_range("yesterday", date(2024, 1, 10))
