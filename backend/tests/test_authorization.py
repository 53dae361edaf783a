"""
Authorization tests.

Verifies:
- Protected endpoints return 401 without a token
- Each operation admits exactly its listed roles (403 otherwise)
- Role checks run before the payload is looked at
- Employees only see their own visits in listings
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/companies"),
            ("GET", "/api/branches"),
            ("GET", "/api/visits"),
            ("GET", "/api/visits/1"),
            ("POST", "/api/visits/start"),
            ("POST", "/api/visits/1/end"),
            ("PUT", "/api/visits/1/cash"),
            ("POST", "/api/visits/1/inventory"),
            ("POST", "/api/visits/1/notes"),
            ("POST", "/api/visits/1/submit"),
            ("POST", "/api/visits/1/approve"),
            ("GET", "/api/visits/1/pdf"),
            ("POST", "/api/visits/1/send"),
            ("GET", "/api/admin/companies"),
            ("POST", "/api/admin/branches"),
            ("DELETE", "/api/admin/recipients/1"),
            ("GET", "/api/admin/users"),
            ("PUT", "/api/admin/users/1/password"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["error"] == "unauthenticated"

    def test_health_and_index_are_public(self, client):
        assert client.get("/api/health").status_code == 200
        assert client.get("/").status_code == 200


# =============================================================================
# EMPLOYEE DENIED REVIEW AND ADMIN OPERATIONS - 403
# =============================================================================


class TestEmployeeDenied:

    def test_cannot_approve(self, client, employee_headers, open_visit):
        resp = client.post(f"/api/visits/{open_visit.id}/approve", headers=employee_headers)
        assert resp.status_code == 403
        body = resp.get_json()
        assert body["error"] == "forbidden"
        assert body["allowed_roles"] == ["admin", "manager"]

    def test_cannot_send(self, client, employee_headers, open_visit, recipients, app):
        resp = client.post(f"/api/visits/{open_visit.id}/send", headers=employee_headers)
        assert resp.status_code == 403
        assert app.extensions["mail_outbox"] == []

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/companies"),
            ("POST", "/api/admin/companies"),
            ("GET", "/api/admin/branches"),
            ("GET", "/api/admin/recipients"),
            ("GET", "/api/admin/users"),
            ("POST", "/api/admin/users"),
            ("DELETE", "/api/admin/companies/1"),
        ],
    )
    def test_cannot_use_admin_area(self, client, employee_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=employee_headers)
        assert resp.status_code == 403

    def test_denied_regardless_of_payload(self, client, employee_headers):
        # Malformed body would be a 400 if the role gate did not run first
        resp = client.post("/api/admin/companies", json=["not", "an", "object"], headers=employee_headers)
        assert resp.status_code == 403


# =============================================================================
# SUBMIT IS EMPLOYEE-ONLY
# =============================================================================


class TestSubmitIsEmployeeOnly:

    @pytest.mark.parametrize("headers_fixture", ["manager_headers", "admin_headers"])
    def test_staff_cannot_submit(self, client, request, open_visit, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        resp = client.post(f"/api/visits/{open_visit.id}/submit", headers=headers)
        assert resp.status_code == 403
        assert resp.get_json()["allowed_roles"] == ["employee"]

    def test_employee_can_submit(self, client, employee_headers, open_visit):
        resp = client.post(f"/api/visits/{open_visit.id}/submit", headers=employee_headers)
        assert resp.status_code == 200


# =============================================================================
# DELETES ARE ADMIN-ONLY
# =============================================================================


class TestDeleteIsAdminOnly:

    @pytest.mark.parametrize(
        "path",
        ["/api/admin/companies/{company}", "/api/admin/branches/{branch}", "/api/admin/users/{user}"],
    )
    def test_manager_cannot_delete(self, client, manager_headers, company, branch, employee, path):
        url = path.format(company=company.id, branch=branch.id, user=employee.id)
        resp = client.delete(url, headers=manager_headers)
        assert resp.status_code == 403

    def test_manager_can_write(self, client, manager_headers):
        resp = client.post("/api/admin/companies", json={"name": "Contoso"}, headers=manager_headers)
        assert resp.status_code == 201

    def test_admin_can_delete(self, client, admin_headers, company):
        resp = client.delete(f"/api/admin/companies/{company.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"ok": True, "deleted": True}


# =============================================================================
# ALL ROLES MAY CAPTURE AND READ
# =============================================================================


class TestSharedOperations:

    @pytest.mark.parametrize("headers_fixture", ["admin_headers", "manager_headers", "employee_headers"])
    def test_every_role_reads_reference_data(self, client, request, branch, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        assert client.get("/api/companies", headers=headers).status_code == 200
        assert client.get("/api/branches", headers=headers).status_code == 200

    @pytest.mark.parametrize("headers_fixture", ["admin_headers", "manager_headers", "employee_headers"])
    def test_every_role_starts_visits(self, client, request, branch, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        resp = client.post("/api/visits/start", json={"branch_id": branch.id}, headers=headers)
        assert resp.status_code == 201


class TestVisitListingScope:

    def test_employee_sees_only_own_visits(
        self, client, branch, employee_headers, other_employee_headers, manager_headers
    ):
        client.post("/api/visits/start", json={"branch_id": branch.id}, headers=employee_headers)
        client.post("/api/visits/start", json={"branch_id": branch.id}, headers=other_employee_headers)

        own = client.get("/api/visits", headers=employee_headers).get_json()
        assert own["count"] == 1

        everything = client.get("/api/visits", headers=manager_headers).get_json()
        assert everything["count"] == 2
