"""Sign-in, tokens and role checks."""

from spotin.auth import create_staff_token
from tests.conftest import STAFF_PASSWORD


class TestFirstAdminSetup:
    """Tests for POST /auth/setup"""

    def test_setup_creates_admin_once(self, api):
        """Given an empty installation, the first admin can be created exactly once."""
        payload = {"email": "Owner@Spotin.test", "full_name": "Owner", "password": "Coworking2024"}
        response = api.post("/auth/setup", json=payload)
        assert response.status_code == 201
        assert response.json()["role"] == "admin"
        assert response.json()["email"] == "owner@spotin.test"

        again = api.post("/auth/setup", json=payload)
        assert again.status_code == 409

    def test_setup_rejects_weak_password(self, api):
        """Given a password without digits, returns 400."""
        response = api.post(
            "/auth/setup",
            json={"email": "owner@spotin.test", "full_name": "Owner", "password": "onlyletters"},
        )
        assert response.status_code == 400


class TestStaffLogin:
    """Tests for POST /auth/login"""

    def test_login_returns_staff_token(self, api, make_staff):
        """Given valid credentials, returns a bearer token carrying the role."""
        staff = make_staff("receptionist")
        response = api.post("/auth/login", json={"email": staff.email.upper(), "password": STAFF_PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["kind"] == "staff"
        assert body["role"] == "receptionist"

        me = api.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["email"] == staff.email

    def test_wrong_password(self, api, make_staff):
        """Given a wrong password, returns 401."""
        staff = make_staff("barista")
        response = api.post("/auth/login", json={"email": staff.email, "password": "nope12345"})
        assert response.status_code == 401

    def test_disabled_account(self, api, make_staff):
        """Given a deactivated account, returns 401."""
        staff = make_staff("barista", is_active=False)
        response = api.post("/auth/login", json={"email": staff.email, "password": STAFF_PASSWORD})
        assert response.status_code == 401

    def test_login_is_rate_limited(self, api, make_staff):
        """Repeated attempts from one address are throttled with 429."""
        staff = make_staff("barista")
        statuses = [
            api.post("/auth/login", json={"email": staff.email, "password": "wrong-pass1"}).status_code
            for _ in range(11)
        ]
        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429


class TestAccessControl:
    """Bearer token and role enforcement"""

    def test_missing_token(self, api):
        """Given no Authorization header, returns 401."""
        assert api.get("/clients").status_code == 401

    def test_garbage_token(self, api):
        """Given a token that is not a JWT, returns 401."""
        response = api.get("/clients", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_role_not_allowed(self, api, headers_for):
        """A barista cannot open the payroll area."""
        response = api.get("/payroll/employees", headers=headers_for("barista"))
        assert response.status_code == 403

    def test_client_token_rejected_on_staff_route(self, api, make_member, member_headers):
        """Member portal tokens never unlock staff endpoints."""
        member = make_member()
        response = api.get("/clients", headers=member_headers(member))
        assert response.status_code == 403

    def test_staff_token_rejected_on_portal(self, api, headers_for):
        """Staff tokens are not member tokens."""
        response = api.get("/portal/me", headers=headers_for("admin"))
        assert response.status_code == 403


class TestStaffManagement:
    """Tests for /staff"""

    def test_create_staff_with_unknown_role(self, api, headers_for):
        """Given a role outside the list, returns 400."""
        response = api.post(
            "/staff",
            headers=headers_for("admin"),
            json={"email": "x@spotin.test", "full_name": "X", "role": "wizard", "password": "Welcome2024"},
        )
        assert response.status_code == 400

    def test_ceo_cannot_create_admin(self, api, headers_for):
        """Only admins can hand out the admin role."""
        response = api.post(
            "/staff",
            headers=headers_for("ceo"),
            json={"email": "x@spotin.test", "full_name": "X", "role": "admin", "password": "Welcome2024"},
        )
        assert response.status_code == 403

    def test_last_manager_cannot_be_demoted(self, api, admin):
        """At least one active admin or CEO must remain."""
        headers = {"Authorization": f"Bearer {create_staff_token(admin)}"}
        response = api.patch(f"/staff/{admin.id}", headers=headers, json={"role": "barista"})
        assert response.status_code == 409


class TestClientLogin:
    """Tests for POST /auth/client/login"""

    def test_signup_then_login_with_member_code(self, api):
        """A self-service signup can sign in to the portal with the member code."""
        signup = api.post(
            "/clients/signup",
            json={
                "first_name": "Mona",
                "last_name": "Adel",
                "phone": "01055512345",
                "email": "mona@example.com",
                "password": "Portal2024",
            },
        )
        assert signup.status_code == 201
        code = signup.json()["client_code"]

        login = api.post("/auth/client/login", json={"identifier": code, "password": "Portal2024"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = api.get("/portal/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["client"]["client_code"] == code
        assert me.json()["checked_in"] is False
