"""
收银台与报表API集成测试
"""

from datetime import date


class TestCashRegisterAPI:

    def test_open_and_close(self, client, cashier_headers):
        response = client.get("/api/v1/cash-register/current", headers=cashier_headers)
        assert response.json()["data"] is None

        response = client.post("/api/v1/cash-register/open", headers=cashier_headers,
                               json={"initial_amount": "100.00", "notes": "abertura"})
        assert response.status_code == 200, response.text
        assert response.json()["data"]["status"] == "open"

        response = client.post("/api/v1/cash-register/open", headers=cashier_headers,
                               json={"initial_amount": "50.00"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "REGISTER_ALREADY_OPEN"

        response = client.post("/api/v1/cash-register/close", headers=cashier_headers,
                               json={"final_amount": "95.00"})
        data = response.json()["data"]
        assert data["status"] == "closed"
        assert data["difference"] == "-5.00"

        history = client.get("/api/v1/cash-register/history", headers=cashier_headers).json()["data"]
        assert len(history) == 1

    def test_close_without_open(self, client, manager_headers):
        response = client.post("/api/v1/cash-register/close", headers=manager_headers,
                               json={"final_amount": "0"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "NO_OPEN_REGISTER"

    def test_negative_amount_rejected(self, client, cashier_headers):
        response = client.post("/api/v1/cash-register/open", headers=cashier_headers,
                               json={"initial_amount": "-1"})
        assert response.status_code == 422

    def test_waiter_cannot_open(self, client, waiter_headers):
        response = client.post("/api/v1/cash-register/open", headers=waiter_headers,
                               json={"initial_amount": "10"})
        assert response.status_code == 403


class TestReportsAPI:

    def test_sales_report_empty(self, client, manager_headers):
        today = date.today().isoformat()
        response = client.get("/api/v1/reports/sales", headers=manager_headers,
                              params={"start_date": today, "end_date": today})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["days"] == []
        assert data["totals"]["revenue"] == "0.00"

    def test_sales_report_invalid_range(self, client, manager_headers):
        response = client.get("/api/v1/reports/sales", headers=manager_headers,
                              params={"start_date": "2024-02-02", "end_date": "2024-02-01"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_DATE_RANGE"

    def test_reports_require_manager(self, client, cashier_headers):
        response = client.get("/api/v1/reports/summary", headers=cashier_headers)
        assert response.status_code == 403

    def test_summary(self, client, manager_headers):
        response = client.get("/api/v1/reports/summary", headers=manager_headers)
        data = response.json()["data"]
        assert data["revenue"] == "0.00"
        assert data["open_orders"] == 0


class TestOpenAPI:

    def test_error_envelope_documented(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/v1/orders"]["post"]["responses"]
        assert "409" in responses
