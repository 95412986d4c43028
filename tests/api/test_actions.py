"""Tests for POST /api/actions unified mutation endpoint."""

from decimal import Decimal
from uuid import uuid4

import pytest

from auth.exceptions import LicenseRejectedError, SubscriptionExpiredError
from core.exceptions import NotFoundError, TransientIOError
from core.models import User, WorkOrderStatus
from factories import TEST_OWNER_EMAIL, TEST_OWNER_ID, make_customer, make_order, make_vehicle


def post(client, domain, action, data):
    return client.post("/api/actions", json={"domain": domain, "action": action, "data": data})


@pytest.fixture
def saved_echo(gateway):
    """Gateway upsert returns what it was given, with an id."""
    gateway.upsert_work_order.side_effect = lambda ctx, order: order.model_copy(
        update={"id": order.id or uuid4()}
    )
    return gateway


class TestDispatch:
    """Tests for domain/action routing."""

    def test_unknown_domain(self, client):
        response = post(client, "ticket", "create", {})

        assert response.status_code == 400
        assert "Unknown domain" in response.json()["error"]["message"]

    def test_unknown_action(self, client):
        response = post(client, "customer", "delete", {"id": str(uuid4())})

        assert response.status_code == 400
        assert "not allowed" in response.json()["error"]["message"]

    def test_requires_auth(self, unauthed_client):
        assert post(unauthed_client, "customer", "create", {"name": "Maria"}).status_code == 401

    def test_expired_account_blocked(self, client, guard, services):
        guard.require_access.side_effect = SubscriptionExpiredError("expired")

        response = post(client, "customer", "create", {"name": "Maria"})

        assert response.status_code == 402
        services["customer"].create.assert_not_called()

    def test_subscription_domain_not_gated(self, client, guard, services):
        """An expired account can still redeem a code."""
        guard.require_access.side_effect = SubscriptionExpiredError("expired")
        services["license"].redeem.return_value = User(id=TEST_OWNER_ID, name="Ana", email=TEST_OWNER_EMAIL)

        response = post(client, "subscription", "redeem", {"code": "PRO-AAAA-BBBB-CC"})

        assert response.status_code == 200
        assert services["license"].redeem.call_args.args[1] == "PRO-AAAA-BBBB-CC"

    def test_storage_failure_is_503(self, client, services):
        services["customer"].create.side_effect = TransientIOError("db down")

        response = post(client, "customer", "create", {"name": "Maria"})

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


class TestCustomerAndVehicleActions:
    """Tests for customer and vehicle actions."""

    def test_create_customer(self, client, services):
        services["customer"].create.return_value = make_customer("Maria")

        response = post(client, "customer", "create", {"name": "Maria", "phone": "123"})

        assert response.status_code == 200
        ctx, data = services["customer"].create.call_args.args
        assert ctx.owner_id == TEST_OWNER_ID
        assert data.name == "Maria"

    def test_create_customer_without_name(self, client, services):
        response = post(client, "customer", "create", {"phone": "123"})

        assert response.status_code == 400
        services["customer"].create.assert_not_called()

    def test_update_missing_customer(self, client, services):
        services["customer"].update.side_effect = NotFoundError("Customer not found")

        response = post(client, "customer", "update", {"id": str(uuid4()), "name": "X"})

        assert response.status_code == 404

    def test_update_without_id(self, client, services):
        response = post(client, "vehicle", "update", {"plate": "XYZ9A87"})

        assert response.status_code == 400
        assert "'id' is required" in response.json()["error"]["message"]
        services["vehicle"].update.assert_not_called()

    def test_create_vehicle(self, client, services):
        customer = make_customer()
        services["vehicle"].create.return_value = make_vehicle(customer)

        response = post(client, "vehicle", "create", {"customer_id": str(customer.id), "plate": "abc1d23"})

        assert response.status_code == 200
        assert services["vehicle"].create.call_args.args[1].plate == "ABC1D23"


class TestWorkOrderActions:
    """Tests for work order actions."""

    def test_save_new_order(self, client, gateway, saved_echo):
        customer = make_customer()
        vehicle = make_vehicle(customer)
        gateway.get_customer.return_value = customer
        gateway.get_vehicle.return_value = vehicle

        response = post(client, "work_order", "save", {
            "customer_id": str(customer.id),
            "vehicle_id": str(vehicle.id),
            "services": [{"description": "Porta", "price": "450"}, {"description": "Para-lama", "price": "350"}],
            "discount": "200",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == "600.00"
        assert data["status"] == "pending_quote"
        gateway.upsert_work_order.assert_called_once()

    def test_save_without_vehicle_rejected(self, client, gateway):
        customer = make_customer()
        gateway.get_customer.return_value = customer

        response = post(client, "work_order", "save", {"customer_id": str(customer.id)})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        gateway.upsert_work_order.assert_not_called()

    def test_save_negative_discount_rejected(self, client, gateway):
        response = post(client, "work_order", "save", {"discount": "-5"})

        assert response.status_code == 400
        gateway.upsert_work_order.assert_not_called()

    def test_edit_unknown_order(self, client, gateway):
        gateway.get_work_order.return_value = None

        response = post(client, "work_order", "save", {"id": str(uuid4()), "description": "x"})

        assert response.status_code == 404

    def test_set_status_finishes(self, client, gateway, saved_echo):
        order = make_order(
            prices=["100"], status=WorkOrderStatus.IN_PROGRESS, customer_id=uuid4(), vehicle_id=uuid4(),
        )
        gateway.get_work_order.return_value = order

        response = post(client, "work_order", "set_status", {"id": str(order.id), "status": "finished"})

        data = response.json()["data"]
        assert data["status"] == "finished"
        assert data["exit_date"] is not None

    def test_set_unknown_status(self, client, gateway):
        gateway.get_work_order.return_value = make_order(customer_id=uuid4(), vehicle_id=uuid4())

        response = post(client, "work_order", "set_status", {"id": str(uuid4()), "status": "archived"})

        assert response.status_code == 400

    def test_set_status_without_status(self, client, gateway):
        gateway.get_work_order.return_value = make_order(customer_id=uuid4(), vehicle_id=uuid4())

        response = post(client, "work_order", "set_status", {"id": str(uuid4())})

        assert response.status_code == 400
        assert "'status' is required" in response.json()["error"]["message"]
        gateway.upsert_work_order.assert_not_called()

    def test_set_status_without_id(self, client, gateway):
        response = post(client, "work_order", "set_status", {"status": "finished"})

        assert response.status_code == 400
        gateway.get_work_order.assert_not_called()


class TestSettingsAndProfileActions:
    """Tests for settings, subscription and profile actions."""

    def test_save_settings(self, client, services):
        from factories import make_settings

        services["settings"].update.return_value = make_settings(name="Nova")

        response = post(client, "settings", "save", {"name": "Nova", "address": {"city": "Campinas"}})

        assert response.json()["data"]["name"] == "Nova"
        update = services["settings"].update.call_args.args[1]
        assert update.address.city == "Campinas"

    def test_rejected_license(self, client, services):
        services["license"].redeem.side_effect = LicenseRejectedError("Código inválido")

        response = post(client, "subscription", "redeem", {"code": "PRO-0000-0000-00"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "LICENSE_REJECTED"

    def test_register_profile(self, client, services):
        services["user"].register.return_value = User(id=TEST_OWNER_ID, name="Ana", email=TEST_OWNER_EMAIL)

        response = post(client, "profile", "register", {"name": "Ana", "email": TEST_OWNER_EMAIL})

        assert response.status_code == 200
        assert services["user"].register.call_args.args[1].email == TEST_OWNER_EMAIL
