"""Payroll employees, runs and reports."""

from datetime import date

import pytest
from fastapi import HTTPException

from spotin.domain.payroll.schemas import EmployeeCreate, EmployeeUpdate, PayrollProcess
from spotin.domain.payroll.service import PayrollService


def employee_data(code: str = "EMP-001", **overrides) -> EmployeeCreate:
    values = {
        "employee_name": "Reem Adel",
        "employee_code": code,
        "position": "Barista",
        "department": "Cafe",
        "base_salary": 6000,
        "bonuses": 500,
        "deductions": 300,
        "start_date": date(2024, 3, 1),
    }
    values.update(overrides)
    return EmployeeCreate(**values)


PERIOD = PayrollProcess(period_start=date(2024, 5, 1), period_end=date(2024, 5, 31))


class TestEmployees:
    """Tests for /payroll/employees"""

    def test_net_salary(self, api, headers_for):
        """Net salary is base plus bonuses minus deductions."""
        response = api.post(
            "/payroll/employees",
            headers=headers_for("hr"),
            json=employee_data().model_dump(mode="json"),
        )
        assert response.status_code == 201
        assert response.json()["net_salary"] == 6200

    def test_deductions_exceed_pay(self, db):
        """Given deductions above base plus bonuses, returns 400."""
        with pytest.raises(HTTPException) as exc:
            PayrollService(db).create_employee(employee_data(base_salary=1000, bonuses=0, deductions=1500))
        assert exc.value.status_code == 400

    def test_duplicate_code(self, db):
        """Employee codes are unique."""
        service = PayrollService(db)
        service.create_employee(employee_data())
        with pytest.raises(HTTPException) as exc:
            service.create_employee(employee_data(employee_name="Someone Else"))
        assert exc.value.status_code == 409

    def test_update_recomputes_net(self, db):
        """Changing one component recomputes the net salary."""
        service = PayrollService(db)
        employee = service.create_employee(employee_data())
        updated = service.update_employee(employee.id, EmployeeUpdate(bonuses=1000))
        assert updated.net_salary == 6700

    def test_receptionist_has_no_access(self, api, headers_for):
        """Payroll is limited to management, HR and finance."""
        assert api.get("/payroll/employees", headers=headers_for("receptionist")).status_code == 403


class TestPayrollRuns:
    """Processing and paying payroll"""

    def test_process_then_pay(self, db, admin):
        """A run starts pending and can be paid exactly once."""
        service = PayrollService(db)
        employee = service.create_employee(employee_data())

        tx = service.process_payroll(employee.id, PERIOD, admin)
        assert tx["payment_status"] == "pending"
        assert tx["total_amount"] == 6200

        paid = service.mark_paid(tx["id"])
        assert paid["payment_status"] == "paid"
        assert paid["paid_at"] is not None

        with pytest.raises(HTTPException) as exc:
            service.mark_paid(tx["id"])
        assert exc.value.status_code == 409

    def test_overrides_for_one_period(self, db, admin):
        """A run can override the bonus for that period only."""
        service = PayrollService(db)
        employee = service.create_employee(employee_data())
        tx = service.process_payroll(
            employee.id,
            PayrollProcess(period_start=date(2024, 6, 1), period_end=date(2024, 6, 30), bonuses=0),
            admin,
        )
        assert tx["total_amount"] == 5700
        assert service.get_employee(employee.id).bonuses == 500

    def test_inactive_employee(self, db, admin):
        """Given a deactivated employee, returns 409."""
        service = PayrollService(db)
        employee = service.create_employee(employee_data())
        service.deactivate_employee(employee.id)
        with pytest.raises(HTTPException) as exc:
            service.process_payroll(employee.id, PERIOD, admin)
        assert exc.value.status_code == 409

    def test_period_backwards(self, db, admin):
        """Given a period ending before it starts, returns 400."""
        service = PayrollService(db)
        employee = service.create_employee(employee_data())
        with pytest.raises(HTTPException) as exc:
            service.process_payroll(
                employee.id, PayrollProcess(period_start=date(2024, 5, 31), period_end=date(2024, 5, 1)), admin
            )
        assert exc.value.status_code == 400


class TestPayrollReports:
    """Summary and export"""

    def test_summary(self, db, admin):
        """Weekly pay is scaled to a monthly figure; pending runs are totalled."""
        service = PayrollService(db)
        barista = service.create_employee(employee_data())
        service.create_employee(
            employee_data(
                code="EMP-002",
                employee_name="Ali Samir",
                department="Front Desk",
                base_salary=1200,
                bonuses=0,
                deductions=0,
                payment_frequency="weekly",
            )
        )
        service.process_payroll(barista.id, PERIOD, admin)

        summary = service.summary()

        assert summary["active_employees"] == 2
        assert summary["monthly_payroll"] == 11400
        assert summary["pending_count"] == 1
        assert summary["pending_total"] == 6200
        assert [d["department"] for d in summary["by_department"]] == ["Cafe", "Front Desk"]

    def test_export_csv(self, api, headers_for, db):
        """The export lists every employee under a fixed header."""
        PayrollService(db).create_employee(employee_data())
        response = api.get("/payroll/export", headers=headers_for("finance"))
        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("Employee Name,Employee ID,Position")
        assert "Reem Adel" in lines[1]
