# Overview: Pytest coverage for checkout, stock reservation, cancellation and admin status changes.

"""
Order Tests

Stock is reserved at checkout and returned on cancellation. Cancellation is
allowed only while the order is pending or confirmed.
"""

from decimal import Decimal

import pytest

from herbtrade.errors import NotFoundError, ValidationError
from herbtrade.models import Product
from herbtrade.services import order_service
from herbtrade.services.assignment_service import manual_assign
from herbtrade.services.delivery_service import update_delivery_status
from herbtrade.services.order_lifecycle import InvalidStateForCancellationError
from herbtrade.services.order_service import InsufficientStockError
from herbtrade.services.permission_service import AccessDeniedError


def stock_of(db_session, product_id):
    db_session.expire_all()
    return db_session.get(Product, product_id).in_stock


class TestCreateOrder:
    """Checkout through the service."""

    def test_reserves_stock_and_prices_from_catalog(self, db_session, customer, product):
        order = order_service.create_order(
            customer,
            [{"product_id": product.id, "quantity": 3}],
        )

        assert order.status == "pending"
        assert order.delivery_status == "unassigned"
        assert order.payment_method == "cod"
        assert order.payment_status == "pending"
        assert order.total_amount == Decimal("300")
        assert order.items[0].unit_price == Decimal("100")
        assert stock_of(db_session, product.id) == 7

    def test_repeated_lines_checked_together(self, db_session, customer, product):
        with pytest.raises(InsufficientStockError):
            order_service.create_order(
                customer,
                [{"product_id": product.id, "quantity": 6}, {"product_id": product.id, "quantity": 5}],
            )
        assert stock_of(db_session, product.id) == 10

    def test_insufficient_stock(self, db_session, customer, product):
        with pytest.raises(InsufficientStockError) as exc:
            order_service.create_order(customer, [{"product_id": product.id, "quantity": 11}])

        assert exc.value.message == "Insufficient stock for Tulsi Leaves"
        assert stock_of(db_session, product.id) == 10

    def test_unknown_product(self, db_session, customer):
        with pytest.raises(ValidationError):
            order_service.create_order(customer, [{"product_id": 99999, "quantity": 1}])

    @pytest.mark.parametrize("items", [
        None,
        [],
        [{"quantity": 1}],
        [{"product_id": 1, "quantity": 0}],
        [{"product_id": 1, "quantity": "2"}],
        ["not-an-object"],
    ])
    def test_malformed_items(self, db_session, customer, items):
        with pytest.raises(ValidationError):
            order_service.create_order(customer, items)

    def test_invalid_payment_method(self, db_session, customer, product):
        with pytest.raises(ValidationError):
            order_service.create_order(
                customer, [{"product_id": product.id, "quantity": 1}], payment_method="barter"
            )

    def test_shipping_and_location_stored(self, db_session, order):
        data = order.to_dict()

        assert data["shipping_address"]["city"] == "Thiruvananthapuram"
        assert data["delivery_location"] == {"type": "Point", "coordinates": [76.95, 8.84]}


class TestCancelOrder:
    """Cancellation returns stock."""

    def test_cancel_restores_stock(self, db_session, customer, make_order, product):
        placed = make_order(customer, quantity=3)
        assert stock_of(db_session, product.id) == 7

        cancelled = order_service.cancel_order(placed.id, customer)

        assert cancelled.status == "cancelled"
        assert stock_of(db_session, product.id) == 10

    def test_cancel_confirmed_order(self, db_session, customer, agent, order, sent_emails):
        manual_assign(order.id, agent.id)

        cancelled = order_service.cancel_order(order.id, customer)

        assert cancelled.status == "cancelled"

    def test_cannot_cancel_after_pickup(self, db_session, customer, agent, order, product, sent_emails):
        manual_assign(order.id, agent.id)
        update_delivery_status(order.id, agent, "picked_up")

        with pytest.raises(InvalidStateForCancellationError) as exc:
            order_service.cancel_order(order.id, customer)

        assert exc.value.message == "Cannot cancel order in current status"
        assert stock_of(db_session, product.id) == 9

    def test_cannot_cancel_twice(self, db_session, customer, order, product):
        order_service.cancel_order(order.id, customer)

        with pytest.raises(InvalidStateForCancellationError):
            order_service.cancel_order(order.id, customer)
        assert stock_of(db_session, product.id) == 10

    def test_other_customer_denied(self, db_session, other_customer, order):
        with pytest.raises(AccessDeniedError):
            order_service.cancel_order(order.id, other_customer)

    def test_unknown_order(self, db_session, customer):
        with pytest.raises(NotFoundError):
            order_service.cancel_order(99999, customer)


class TestOrderVisibility:
    """Owner, assignee and admins can read an order."""

    def test_owner_admin_and_assignee(self, db_session, customer, admin, agent, order, sent_emails):
        assert order_service.get_order_for(customer, order.id).id == order.id
        assert order_service.get_order_for(admin, order.id).id == order.id

        with pytest.raises(AccessDeniedError):
            order_service.get_order_for(agent, order.id)

        manual_assign(order.id, agent.id)
        assert order_service.get_order_for(agent, order.id).id == order.id

    def test_other_customer_denied(self, db_session, other_customer, order):
        with pytest.raises(AccessDeniedError):
            order_service.get_order_for(other_customer, order.id)


class TestAdminStatusUpdate:
    """Admin override of the order status."""

    def test_set_shipped_with_tracking(self, db_session, admin, order):
        updated = order_service.update_order_status(order.id, "shipped", admin, tracking_number="TRK-1")

        assert updated.status == "shipped"
        assert updated.tracking_number == "TRK-1"

    def test_delivered_stamps_date(self, db_session, admin, order):
        updated = order_service.update_order_status(order.id, "delivered", admin)

        assert updated.delivery_date is not None

    def test_cancelled_goes_through_cancellation(self, db_session, admin, customer, make_order, product):
        placed = make_order(customer, quantity=2)

        updated = order_service.update_order_status(placed.id, "cancelled", admin)

        assert updated.status == "cancelled"
        assert stock_of(db_session, product.id) == 10

    def test_invalid_status(self, db_session, admin, order):
        with pytest.raises(ValidationError):
            order_service.update_order_status(order.id, "lost", admin)

    def test_filters(self, db_session, admin, customer, make_order):
        first = make_order(customer)
        second = make_order(customer)
        order_service.update_order_status(second.id, "shipped", admin)

        assert [o.id for o in order_service.list_all_orders(status="pending")] == [first.id]
        assert len(order_service.list_all_orders(delivery_status="unassigned")) == 2
        with pytest.raises(ValidationError):
            order_service.list_all_orders(status="lost")


class TestOrderRoutes:
    """HTTP surface for customers."""

    def test_place_order(self, client, db_session, customer, product, headers_for):
        resp = client.post(
            "/api/orders",
            json={
                "items": [{"product_id": product.id, "quantity": 2}],
                "shipping_address": {"street": "1 MG Road", "city": "Kochi", "zipCode": "682001"},
                "delivery_location": {"coordinates": [76.27, 9.93]},
                "payment_method": "online",
            },
            headers=headers_for(customer),
        )

        assert resp.status_code == 201
        data = resp.get_json()["order"]
        assert data["total_amount"] == 200.0
        assert data["shipping_address"]["zip_code"] == "682001"
        assert data["delivery_location"]["coordinates"] == [76.27, 9.93]
        assert data["payment_method"] == "online"

    def test_place_order_bad_location(self, client, db_session, customer, product, headers_for):
        resp = client.post(
            "/api/orders",
            json={
                "items": [{"product_id": product.id, "quantity": 1}],
                "delivery_location": {"coordinates": [500, 9.93]},
            },
            headers=headers_for(customer),
        )
        assert resp.status_code == 400
        assert stock_of(db_session, product.id) == 10

    def test_my_orders(self, client, db_session, customer, other_customer, make_order, headers_for):
        mine = make_order(customer)
        make_order(other_customer)

        resp = client.get("/api/orders/my-orders", headers=headers_for(customer))

        assert [o["id"] for o in resp.get_json()["orders"]] == [mine.id]

    def test_order_detail_denied_for_other_customer(self, client, db_session, other_customer, order, headers_for):
        resp = client.get(f"/api/orders/{order.id}", headers=headers_for(other_customer))
        assert resp.status_code == 403

    def test_order_detail_missing(self, client, db_session, customer, headers_for):
        resp = client.get("/api/orders/99999", headers=headers_for(customer))
        assert resp.status_code == 404

    def test_cancel_route(self, client, db_session, customer, order, headers_for):
        resp = client.patch(f"/api/orders/{order.id}/cancel", headers=headers_for(customer))

        assert resp.status_code == 200
        assert resp.get_json()["order"]["status"] == "cancelled"

    def test_cancel_route_other_customer(self, client, db_session, other_customer, order, headers_for):
        resp = client.patch(f"/api/orders/{order.id}/cancel", headers=headers_for(other_customer))
        assert resp.status_code == 403
