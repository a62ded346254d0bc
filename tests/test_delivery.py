"""Delivery partner registry and order hand-off, with the partner API mocked."""

import json

import httpx
import pytest

from storefront.errors import Conflict, DeliveryError, InvalidArgument, NotFound
from storefront.models.delivery_company import PriceCalculation
from storefront.models.order import OrderStatus
from storefront.models.product import InventoryEntry
from storefront.schemas.delivery import Credentials, DeliveryCompanyCreate, DeliveryCompanyUpdate
from storefront.services.delivery_service import DeliveryService
from tests.helpers import make_product, order_data


def _service(services, handler) -> DeliveryService:
    return DeliveryService(services.orders, timeout=5, transport=httpx.MockTransport(handler))


def _company(services, db, code="ARAMEX", **overrides):
    fields = {
        "name": f"{code.title()} Express",
        "code": code,
        "api_url": "https://partner.example.com/orders",
        "credentials": Credentials(login="shop", password="secret", database="prod"),
    }
    fields.update(overrides)
    return services.delivery.create_company(db, DeliveryCompanyCreate(**fields))


def _order(services, db, quantity=2):
    product = make_product(services, db, sizes=[("M", 5)], colors=["red"], weight=0.5)
    return services.orders.create_order(db, order_data([(product.id, "M", "red", quantity)]))


class TestCompanyRegistry:

    def test_code_is_upper_cased(self, db, services):
        company = _company(services, db, code="aramex")
        assert company.code == "ARAMEX"

    def test_duplicate_code_rejected(self, db, services):
        _company(services, db)
        with pytest.raises(Conflict):
            _company(services, db, name="Another")

    def test_update_and_delete(self, db, services):
        company = _company(services, db)
        updated = services.delivery.update_company(db, company.id, DeliveryCompanyUpdate(base_price=7.5, is_active=False))
        assert (updated.base_price, updated.is_active) == (7.5, False)
        services.delivery.delete_company(db, company.id)
        with pytest.raises(NotFound):
            services.delivery.get_company(db, company.id)

    def test_required_fields(self, db, services):
        with pytest.raises(InvalidArgument):
            _company(services, db, api_url=" ")


class TestSendOrder:

    def test_aramex_success_records_tracking(self, db, services):
        order = _order(services, db)
        company = _company(services, db)
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {"tracking_number": "AX-1", "status": "created"}})

        result = _service(services, handler).send_order(db, order.id, company.id)

        assert (result.success, result.tracking_number, result.status) == (True, "AX-1", "created")
        shipment = seen["body"]["shipments"][0]
        assert shipment["reference"] == order.order_number
        assert shipment["recipient"]["address"]["country"] == "JO"
        stored = services.orders.get_order(db, order.id)
        assert (stored.tracking_number, stored.delivery_status) == ("AX-1", "created")
        assert stored.status == OrderStatus.PROCESSING

    def test_three_minds_payload(self, db, services):
        order = _order(services, db)
        company = _company(services, db, code="THREE_MINDS")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": {"tracking_number": "TM-9"}})

        result = _service(services, handler).send_order(db, order.id, company.id)

        params = seen["body"]["params"]
        assert (params["login"], params["password"], params["db"]) == ("shop", "secret", "prod")
        assert params["orders_list"][0]["customer_mobile"] == "962791234567"
        assert params["orders_list"][0]["cost"] == order.total_amount
        assert (result.tracking_number, result.status) == ("TM-9", "pending")

    def test_partner_error_keeps_stock(self, db, services):
        order = _order(services, db, quantity=2)
        company = _company(services, db)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"message": "Address not serviceable"})

        with pytest.raises(DeliveryError, match="Address not serviceable"):
            _service(services, handler).send_order(db, order.id, company.id)

        assert db.query(InventoryEntry).one().quantity == 3
        assert services.orders.get_order(db, order.id).status == OrderStatus.PENDING

    def test_unsuccessful_response(self, db, services):
        order = _order(services, db)
        company = _company(services, db)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error": "Quota exceeded"})

        with pytest.raises(DeliveryError, match="Quota exceeded"):
            _service(services, handler).send_order(db, order.id, company.id)

    def test_network_failure(self, db, services):
        order = _order(services, db)
        company = _company(services, db)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DeliveryError):
            _service(services, handler).send_order(db, order.id, company.id)

    @pytest.mark.parametrize("path", [["cancelled"], ["processing", "shipped", "delivered"]])
    def test_closed_order_is_not_sent(self, db, services, path):
        order = _order(services, db, quantity=2)
        for status in path:
            services.orders.update_order_status(db, order.id, status, actor_id="admin-1")
        company = _company(services, db)
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"success": True, "data": {"tracking_number": "T1"}})

        with pytest.raises(InvalidArgument, match="cannot be sent for delivery"):
            _service(services, handler).send_order(db, order.id, company.id)

        assert calls == []
        assert services.orders.get_order(db, order.id).tracking_number == ""

    def test_cancelled_order_stock_stays_released(self, db, services):
        order = _order(services, db, quantity=2)
        services.orders.update_order_status(db, order.id, "cancelled")
        company = _company(services, db)

        with pytest.raises(InvalidArgument):
            services.delivery.send_order(db, order.id, company.id)
        with pytest.raises(Conflict, match="cannot be dispatched"):
            services.orders.record_dispatch(db, order.id, company.id, "T1", "created")

        assert db.query(InventoryEntry).one().quantity == 5
        stored = services.orders.get_order(db, order.id)
        assert (stored.status, stored.tracking_number) == (OrderStatus.CANCELLED, "")

    def test_processing_order_can_be_sent(self, db, services):
        order = _order(services, db)
        services.orders.update_order_status(db, order.id, "processing")
        company = _company(services, db)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "data": {"tracking_number": "AX-2"}})

        _service(services, handler).send_order(db, order.id, company.id)
        stored = services.orders.get_order(db, order.id)
        assert (stored.status, stored.tracking_number) == (OrderStatus.PROCESSING, "AX-2")

    def test_inactive_company(self, db, services):
        order = _order(services, db)
        company = _company(services, db, is_active=False)
        with pytest.raises(InvalidArgument, match="not active"):
            services.delivery.send_order(db, order.id, company.id)

    def test_unsupported_company_code(self, db, services):
        order = _order(services, db)
        company = _company(services, db, code="DHL")
        with pytest.raises(InvalidArgument, match="Unsupported delivery company"):
            services.delivery.send_order(db, order.id, company.id)


class TestDeliveryFee:

    def test_fixed_fee(self, db, services):
        order = _order(services, db)
        company = _company(services, db, base_price=3.0)
        assert services.delivery.calculate_fee(db, order.id, company.id) == 3.0

    def test_weight_fee(self, db, services):
        order = _order(services, db, quantity=2)
        company = _company(services, db, base_price=4.0, price_calculation=PriceCalculation.WEIGHT)
        assert services.delivery.calculate_fee(db, order.id, company.id) == pytest.approx(4.0)


class TestDeliveryStatus:

    def test_reports_stored_tracking(self, db, services):
        order = _order(services, db)
        company = _company(services, db)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "data": {"tracking_number": "AX-7", "status": "created"}})

        _service(services, handler).send_order(db, order.id, company.id)
        status = services.delivery.get_delivery_status(db, order.id, company.id)

        assert (status.order_number, status.company_name) == (order.order_number, company.name)
        assert (status.order_status, status.tracking_number, status.delivery_status) == (
            "processing", "AX-7", "created"
        )

    def test_order_not_sent_to_company(self, db, services):
        order = _order(services, db)
        company = _company(services, db)
        with pytest.raises(NotFound, match="was not sent to"):
            services.delivery.get_delivery_status(db, order.id, company.id)
