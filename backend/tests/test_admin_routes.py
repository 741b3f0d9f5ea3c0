# Overview: Pytest coverage for admin routes; staff onboarding, account status and dispatch.

import pytest

from herbtrade.models import StaffMember


class TestStaffOnboarding:
    """POST /api/admin/add-employee and /api/admin/add-delivery"""

    def test_add_employee_emails_password(self, client, db_session, admin, headers_for, sent_emails):
        resp = client.post(
            "/api/admin/add-employee",
            json={"email": "packer@herbtrade.test", "role": "employee", "name": "Packer", "department": "Warehouse"},
            headers=headers_for(admin),
        )

        assert resp.status_code == 201
        employee = resp.get_json()["employee"]
        assert employee["role"] == "employee"
        assert employee["is_first_login"] is True
        assert employee["created_by_id"] == admin.id
        assert "password" not in resp.get_json()

        assert len(sent_emails) == 1
        assert sent_emails[0]["to"] == "packer@herbtrade.test"
        assert sent_emails[0]["subject"] == "Welcome to HerbTrade - Your Account Details"
        assert "Temporary password:" in sent_emails[0]["body"]

    def test_add_employee_invalid_role(self, client, db_session, admin, headers_for, sent_emails):
        resp = client.post(
            "/api/admin/add-employee",
            json={"email": "x@herbtrade.test", "role": "admin"},
            headers=headers_for(admin),
        )
        assert resp.status_code == 400
        assert sent_emails == []

    def test_add_employee_missing_fields(self, client, db_session, admin, headers_for):
        resp = client.post("/api/admin/add-employee", json={"email": "x@herbtrade.test"}, headers=headers_for(admin))
        assert resp.status_code == 400

    def test_add_delivery_with_location(self, client, db_session, admin, headers_for, sent_emails):
        resp = client.post(
            "/api/admin/add-delivery",
            json={
                "email": "rider2@herbtrade.test",
                "name": "Rider Two",
                "vehicleType": "scooter",
                "maxDeliveryRadius": 8,
                "currentLocation": {"type": "Point", "coordinates": [76.90, 8.80]},
            },
            headers=headers_for(admin),
        )

        assert resp.status_code == 201
        agent = resp.get_json()["employee"]
        assert agent["role"] == "delivery"
        assert agent["department"] == "Delivery"
        assert agent["vehicle_type"] == "scooter"
        assert agent["max_delivery_radius_km"] == 8.0
        assert agent["is_available"] is True
        assert agent["current_location"]["coordinates"] == [76.90, 8.80]

    def test_add_delivery_defaults(self, client, db_session, admin, headers_for, sent_emails):
        resp = client.post(
            "/api/admin/add-delivery",
            json={"email": "rider3@herbtrade.test", "latitude": 8.8, "longitude": 76.9},
            headers=headers_for(admin),
        )

        agent = resp.get_json()["employee"]
        assert agent["vehicle_type"] == "bike"
        assert agent["max_delivery_radius_km"] == 10.0
        assert agent["current_location"]["coordinates"] == [76.9, 8.8]

    @pytest.mark.parametrize("payload", [
        {"email": "r@herbtrade.test", "vehicleType": "rocket"},
        {"email": "r@herbtrade.test", "maxDeliveryRadius": -1},
        {"email": "r@herbtrade.test", "currentLocation": {"coordinates": [500, 8.8]}},
    ])
    def test_add_delivery_rejects_bad_input(self, client, db_session, admin, headers_for, sent_emails, payload):
        resp = client.post("/api/admin/add-delivery", json=payload, headers=headers_for(admin))

        assert resp.status_code == 400
        assert db_session.query(StaffMember).filter_by(email="r@herbtrade.test").count() == 0

    def test_duplicate_email(self, client, db_session, admin, agent, headers_for, sent_emails):
        resp = client.post("/api/admin/add-delivery", json={"email": agent.email}, headers=headers_for(admin))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Email already exists"


class TestAccountStatus:
    """Listing and activating/deactivating accounts."""

    def test_list_employees_filtered_by_role(self, client, db_session, admin, seller, agent, headers_for):
        resp = client.get("/api/admin/employees?role=delivery", headers=headers_for(admin))

        assert resp.status_code == 200
        assert [e["id"] for e in resp.get_json()["employees"]] == [agent.id]

        everyone = client.get("/api/admin/employees", headers=headers_for(admin)).get_json()["employees"]
        assert {e["id"] for e in everyone} == {seller.id, agent.id}

    def test_list_users(self, client, db_session, admin, customer, headers_for):
        users = client.get("/api/admin/users", headers=headers_for(admin)).get_json()["users"]

        assert {u["id"] for u in users} == {admin.id, customer.id}
        assert all("password_hash" not in u for u in users)

    def test_toggle_employee(self, client, db_session, admin, agent, headers_for):
        resp = client.put(f"/api/admin/employees/{agent.id}/toggle-status", headers=headers_for(admin))

        assert resp.status_code == 200
        assert resp.get_json()["employee"]["is_active"] is False

        resp = client.put(f"/api/admin/employees/{agent.id}/toggle-status", headers=headers_for(admin))
        assert resp.get_json()["employee"]["is_active"] is True

    def test_toggle_user(self, client, db_session, admin, customer, headers_for):
        resp = client.put(f"/api/admin/users/{customer.id}/toggle-status", headers=headers_for(admin))

        assert resp.status_code == 200
        assert resp.get_json()["message"] == "User deactivated successfully"

    def test_toggle_unknown_employee(self, client, db_session, admin, headers_for):
        resp = client.put("/api/admin/employees/99999/toggle-status", headers=headers_for(admin))
        assert resp.status_code == 404

    def test_customer_id_is_not_an_employee(self, client, db_session, admin, customer, headers_for):
        resp = client.put(f"/api/admin/employees/{customer.id}/toggle-status", headers=headers_for(admin))
        assert resp.status_code == 404

    def test_admin_cannot_deactivate_self(self, client, db_session, admin, headers_for):
        resp = client.put(f"/api/admin/users/{admin.id}/toggle-status", headers=headers_for(admin))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "You cannot change your own status"


class TestEmployeeEdit:
    """PUT /api/admin/employees/<id>"""

    def test_update_fields(self, client, db_session, admin, seller, headers_for):
        resp = client.put(
            f"/api/admin/employees/{seller.id}",
            json={"name": "  Head Seller ", "email": "Head@HerbTrade.test", "department": "Sales"},
            headers=headers_for(admin),
        )

        assert resp.status_code == 200
        employee = resp.get_json()["employee"]
        assert employee["name"] == "Head Seller"
        assert employee["email"] == "head@herbtrade.test"
        assert employee["department"] == "Sales"

    def test_email_taken_by_customer(self, client, db_session, admin, seller, customer, headers_for):
        resp = client.put(
            f"/api/admin/employees/{seller.id}",
            json={"email": customer.email},
            headers=headers_for(admin),
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Email already exists"
        db_session.refresh(seller)
        assert seller.email == "seller@herbtrade.test"

    def test_email_taken_by_staff(self, client, db_session, admin, seller, agent, headers_for):
        resp = client.put(f"/api/admin/employees/{seller.id}", json={"email": agent.email}, headers=headers_for(admin))
        assert resp.status_code == 400

    def test_keeping_own_email(self, client, db_session, admin, seller, headers_for):
        resp = client.put(f"/api/admin/employees/{seller.id}", json={"email": seller.email}, headers=headers_for(admin))
        assert resp.status_code == 200

    def test_promote_to_delivery_sets_defaults(self, client, db_session, admin, seller, headers_for):
        resp = client.put(f"/api/admin/employees/{seller.id}", json={"role": "delivery"}, headers=headers_for(admin))

        employee = resp.get_json()["employee"]
        assert employee["role"] == "delivery"
        assert employee["vehicle_type"] == "bike"
        assert employee["is_available"] is True
        assert employee["max_delivery_radius_km"] == 10.0

    @pytest.mark.parametrize("payload", [
        {"role": "admin"},
        {"name": "   "},
        {"email": "not-an-email"},
    ])
    def test_rejects_bad_input(self, client, db_session, admin, seller, headers_for, payload):
        resp = client.put(f"/api/admin/employees/{seller.id}", json=payload, headers=headers_for(admin))
        assert resp.status_code == 400

    def test_customer_is_not_an_employee(self, client, db_session, admin, customer, headers_for):
        resp = client.put(f"/api/admin/employees/{customer.id}", json={"name": "X"}, headers=headers_for(admin))
        assert resp.status_code == 404


class TestStats:
    """GET /api/admin/stats"""

    def test_counts_and_revenue(self, client, db_session, admin, customer, seller, agent, make_order, headers_for):
        make_order(customer, quantity=2)
        dropped = make_order(customer)
        client.patch(f"/api/admin/orders/{dropped.id}/status", json={"status": "cancelled"}, headers=headers_for(admin))

        resp = client.get("/api/admin/stats", headers=headers_for(admin))

        assert resp.status_code == 200
        stats = resp.get_json()["stats"]
        assert stats["total_users"] == 1
        assert stats["total_admins"] == 1
        assert stats["total_sellers"] == 1
        assert stats["total_employees"] == 0
        assert stats["total_delivery_agents"] == 1
        assert stats["total_orders"] == 2
        assert stats["orders_today"] == 2
        assert stats["total_revenue"] == 200.0

    def test_non_admin_denied(self, client, db_session, seller, headers_for):
        resp = client.get("/api/admin/stats", headers=headers_for(seller))
        assert resp.status_code == 403


class TestOrderOversight:
    """GET /api/admin/orders and PATCH /api/admin/orders/<id>/status"""

    def test_list_orders_with_filters(self, client, db_session, admin, customer, make_order, headers_for):
        first = make_order(customer)
        second = make_order(customer)
        client.patch(f"/api/admin/orders/{second.id}/status", json={"status": "processing"}, headers=headers_for(admin))

        resp = client.get("/api/admin/orders?status=pending", headers=headers_for(admin))
        assert [o["id"] for o in resp.get_json()["orders"]] == [first.id]

        resp = client.get("/api/admin/orders?deliveryStatus=unassigned", headers=headers_for(admin))
        assert len(resp.get_json()["orders"]) == 2

    def test_invalid_filter(self, client, db_session, admin, headers_for):
        resp = client.get("/api/admin/orders?status=lost", headers=headers_for(admin))
        assert resp.status_code == 400

    def test_update_status(self, client, db_session, admin, order, headers_for):
        resp = client.patch(
            f"/api/admin/orders/{order.id}/status",
            json={"status": "shipped", "trackingNumber": "TRK-9"},
            headers=headers_for(admin),
        )

        assert resp.status_code == 200
        data = resp.get_json()["order"]
        assert data["status"] == "shipped"
        assert data["tracking_number"] == "TRK-9"

    def test_update_status_missing(self, client, db_session, admin, order, headers_for):
        resp = client.patch(f"/api/admin/orders/{order.id}/status", json={}, headers=headers_for(admin))
        assert resp.status_code == 400


class TestDispatchRoutes:
    """Nearest agents, auto-assign and manual assign over HTTP."""

    def test_nearest_deliveries(self, client, db_session, admin, agent, order, headers_for):
        resp = client.get(f"/api/admin/orders/{order.id}/nearest-deliveries", headers=headers_for(admin))

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["delivery_location"] == [76.95, 8.84]
        assert [a["agent"]["id"] for a in data["agents"]] == [agent.id]
        assert data["agents"][0]["in_service_area"] is True
        assert data["agents"][0]["distance_km"] < 10

    def test_nearest_deliveries_without_location(self, client, db_session, admin, customer, make_order, headers_for):
        unplaced = make_order(customer, longitude=None, latitude=None)

        resp = client.get(f"/api/admin/orders/{unplaced.id}/nearest-deliveries", headers=headers_for(admin))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Order has no delivery location"

    def test_auto_assign(self, client, db_session, admin, agent, order, headers_for, sent_emails):
        resp = client.post(f"/api/admin/orders/{order.id}/auto-assign-delivery", headers=headers_for(admin))

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["agent"]["id"] == agent.id
        assert data["order"]["delivery_status"] == "assigned"
        assert data["order"]["status"] == "confirmed"
        assert data["order"]["delivery_events"][0]["status"] == "assigned"
        assert data["distance_km"] > 0

        again = client.post(f"/api/admin/orders/{order.id}/auto-assign-delivery", headers=headers_for(admin))
        assert again.status_code == 400
        assert again.get_json()["error"] == "Order is already assigned to a delivery agent"

    def test_auto_assign_no_agent(self, client, db_session, admin, order, headers_for):
        resp = client.post(f"/api/admin/orders/{order.id}/auto-assign-delivery", headers=headers_for(admin))

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "No delivery agents available within range"

    def test_auto_assign_unknown_order(self, client, db_session, admin, headers_for):
        resp = client.post("/api/admin/orders/99999/auto-assign-delivery", headers=headers_for(admin))
        assert resp.status_code == 404

    def test_manual_assign(self, client, db_session, admin, agent, order, headers_for, sent_emails):
        resp = client.post(
            f"/api/admin/orders/{order.id}/assign-delivery",
            json={"agentId": agent.id},
            headers=headers_for(admin),
        )

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["order"]["delivery_assignee_id"] == agent.id
        assert data["distance_km"] is not None

    def test_manual_assign_requires_agent(self, client, db_session, admin, order, headers_for):
        resp = client.post(f"/api/admin/orders/{order.id}/assign-delivery", json={}, headers=headers_for(admin))
        assert resp.status_code == 400

    def test_manual_assign_invalid_agent(self, client, db_session, admin, seller, order, headers_for):
        resp = client.post(
            f"/api/admin/orders/{order.id}/assign-delivery",
            json={"agent_id": seller.id},
            headers=headers_for(admin),
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid delivery agent ID"
