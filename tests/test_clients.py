"""Client registration, lookup and profile views."""

import re

from spotin.domain.clients.service import generate_barcode


class TestRegisterClient:
    """Tests for POST /clients"""

    def test_register_assigns_code_and_barcode(self, api, headers_for):
        """Given a new walk-in, returns a member code and a scannable barcode."""
        response = api.post(
            "/clients",
            headers=headers_for("receptionist"),
            json={"first_name": " Omar ", "last_name": "Fathy", "phone": "010-1234-5678", "email": "Omar@Example.com"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["client_code"] == "C00001"
        assert re.fullmatch(r"BC[A-Z0-9]{8}", body["barcode"])
        assert body["full_name"] == "Omar Fathy"
        assert body["phone"] == "01012345678"
        assert body["email"] == "omar@example.com"
        assert body["active"] is False

    def test_codes_are_sequential(self, make_member):
        """Member codes count up from C00001."""
        first, second = make_member(), make_member()
        assert first.client_code == "C00001"
        assert second.client_code == "C00002"
        assert first.barcode != second.barcode

    def test_barcode_has_no_lookalike_characters(self):
        """Barcodes never contain 0, O, 1 or I."""
        for _ in range(200):
            barcode = generate_barcode()
            assert re.fullmatch(r"BC[A-Z0-9]{8}", barcode)
            assert not set(barcode[2:]) & set("0O1I")

    def test_duplicate_phone(self, api, headers_for, make_member):
        """Given a phone number already on file, returns 409."""
        existing = make_member()
        response = api.post(
            "/clients",
            headers=headers_for("receptionist"),
            json={"first_name": "Other", "last_name": "Person", "phone": existing.phone},
        )
        assert response.status_code == 409

    def test_invalid_phone(self, api, headers_for):
        """Given letters in the phone number, returns 422."""
        response = api.post(
            "/clients",
            headers=headers_for("receptionist"),
            json={"first_name": "A", "last_name": "B", "phone": "call me"},
        )
        assert response.status_code == 422


class TestClientLookup:
    """Search, status and history"""

    def test_search_by_barcode(self, api, headers_for, make_member):
        """Searching by barcode finds the member."""
        member = make_member(first_name="Salma")
        make_member(first_name="Karim")
        response = api.get("/clients", params={"search": member.barcode}, headers=headers_for("receptionist"))
        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [member.id]

    def test_status_of_checked_in_member(self, api, headers_for, make_member, checked_in):
        """Status reflects an open check-in."""
        member = checked_in(make_member())
        response = api.get(f"/clients/{member.id}/status", headers=headers_for("receptionist"))
        assert response.status_code == 200
        body = response.json()
        assert body["checked_in"] is True
        assert body["checked_in_at"] is not None
        assert body["membership"] is None

    def test_unknown_client(self, api, headers_for):
        """Given an unknown id, returns 404."""
        assert api.get("/clients/999", headers=headers_for("receptionist")).status_code == 404

    def test_cannot_deactivate_checked_in_member(self, api, headers_for, make_member, checked_in):
        """A member who is in the space must be checked out first."""
        member = checked_in(make_member())
        response = api.delete(f"/clients/{member.id}", headers=headers_for("receptionist"))
        assert response.status_code == 409

    def test_export_csv(self, api, headers_for, make_member):
        """The export is a CSV with a header row and one row per member."""
        make_member()
        make_member()
        response = api.get("/clients/export", headers=headers_for("crm"))
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("Client Code,Barcode")
        assert len(lines) == 3
