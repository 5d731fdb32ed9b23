"""
Tests for the Flask web app and its JSON API.
"""

from __future__ import annotations

import pytest

import app as webapp


@pytest.fixture
def client(settings):
    previous = webapp.app.config["PAYE_SETTINGS"]
    webapp.app.config.update(TESTING=True, PAYE_SETTINGS=settings)
    with webapp.app.test_client() as client:
        yield client
    webapp.app.config["PAYE_SETTINGS"] = previous


# =============================================================================
# Form parsing
# =============================================================================


class TestParseForm:

    def test_defaults(self):
        inputs = webapp.parse_form({"salary": "£50,000"})
        assert inputs.tax_code == "1257L"
        assert inputs.is_cumulative
        assert inputs.period is None
        assert inputs.tax_year == webapp._settings().tax_year
        assert inputs.car is None

    def test_hourly_pay_and_period(self):
        inputs = webapp.parse_form({
            "salary": "20", "pay_period": "hourly", "hours": "37.5",
            "tax_code": "s1257l", "cumulative": "no",
            "period_type": "week", "period_number": "10",
            "tax_year": "2025-26",
        })
        assert str(inputs.salary) == "39000.00"
        assert inputs.tax_code == "S1257L"
        assert not inputs.is_cumulative
        assert inputs.period.number == 10

    def test_car(self):
        inputs = webapp.parse_form({
            "salary": "50000", "car": "on", "list_price": "30000",
            "fuel_type": "diesel", "co2": "120", "rde2": "no",
        })
        assert inputs.car.fuel_type == "diesel"
        assert not inputs.car.rde2_compliant

    @pytest.mark.parametrize("form", [
        {"salary": ""},
        {"salary": "-1"},
        {"salary": "abc"},
        {"salary": "50000", "tax_code": "HELLO"},
        {"salary": "50000", "period_type": "month", "period_number": "13"},
        {"salary": "50000", "tax_year": "1999-00"},
        {"salary": "50000", "pay_period": "fortnightly"},
    ])
    def test_rejected(self, form):
        with pytest.raises(ValueError):
            webapp.parse_form(form)


# =============================================================================
# HTML pages
# =============================================================================


class TestPages:

    def test_index(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert b"UK PAYE Take-Home Pay" in resp.data

    def test_calculate(self, client, settings):
        resp = client.post("/", data={"salary": "50000", "tax_code": "1257L"})
        html = resp.get_data(as_text=True)
        assert resp.status_code == 200
        assert "£7,486.00" in html
        assert "data:image/png;base64," in html
        assert "download-csv?" in html

    def test_bad_input(self, client):
        resp = client.post("/", data={"salary": "-5"})
        assert resp.status_code == 400
        assert "Salary cannot be negative" in resp.get_data(as_text=True)

    def test_pdf_download(self, client):
        assert client.get("/download-pdf").status_code == 404
        client.post("/", data={"salary": "50000"})
        resp = client.get("/download-pdf")
        assert resp.status_code == 200
        assert resp.data[:4] == b"%PDF"

    def test_csv_download(self, client):
        resp = client.get("/download-csv?salary=50000&tax_code=1257L")
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "paye_breakdown.csv" in resp.headers["Content-Disposition"]
        assert "April" in resp.get_data(as_text=True)

    def test_csv_bad_input(self, client):
        assert client.get("/download-csv?salary=-1").status_code == 400


# =============================================================================
# JSON API
# =============================================================================


class TestCalculateApi:

    def test_calculate(self, client):
        resp = client.post("/api/calculate", json={"annualSalary": 50000, "taxCode": "1257L"})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["annualSummary"]["totalIncomeTax"] == 7486.0
        assert body["annualSummary"]["totalNI"] == 2994.4
        assert body["incomeTaxBands"][-1]["to"] == "unbounded"

    def test_current_period(self, client):
        resp = client.post("/api/calculate", json={
            "annualSalary": "£60,000",
            "currentPeriod": {"type": "month", "number": 3},
            "isCumulative": False,
            "nonCumulativeBasis": "flat_basic",
        })
        body = resp.get_json()
        assert [m["month"] for m in body["monthlyBreakdown"]] == ["April", "May", "June"]
        assert body["isCumulative"] is False

    @pytest.mark.parametrize("payload", [
        {"annualSalary": 50000, "taxCode": "HELLO"},
        {"annualSalary": -1},
        {"annualSalary": 50000, "currentPeriod": {"type": "week", "number": 53}},
        {"annualSalary": 50000, "currentPeriod": 3},
        {"annualSalary": 50000, "currentPeriod": ["month", 3]},
        {"annualSalary": 50000, "nonCumulativeBasis": "guess"},
        {"annualSalary": 50000, "taxYear": "1999-00"},
    ])
    def test_rejected(self, client, payload):
        resp = client.post("/api/calculate", json=payload)
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_not_json(self, client):
        resp = client.post("/api/calculate", data="salary=1")
        assert resp.status_code == 400


class TestCompareApi:

    def test_compare(self, client):
        resp = client.post("/api/compare", json={"scenarios": [
            {"name": "Now", "salary": 50000},
            {"name": "Scotland", "salary": 50000, "taxCode": "S1257L"},
        ]})
        rows = resp.get_json()["scenarios"]
        assert rows[0]["netDifference"] == 0
        assert rows[1]["netDifference"] < 0
        assert rows[1]["taxCode"] == "S1257L"

    def test_empty(self, client):
        assert client.post("/api/compare", json={"scenarios": []}).status_code == 400

    def test_bad_scenario(self, client):
        resp = client.post("/api/compare", json={"scenarios": [{"name": "", "salary": 1}]})
        assert resp.status_code == 400


class TestCarBenefitApi:

    def test_car_benefit(self, client):
        resp = client.post("/api/car-benefit", json={
            "listPrice": 30000, "co2Emissions": 120, "privateFuel": True,
        })
        body = resp.get_json()
        assert body["appropriatePercentage"] == 29.0
        assert body["totalBenefit"] == 16762.0
        assert body["monthlyTaxCost"] == 279.37

    @pytest.mark.parametrize("payload", [
        {"listPrice": 30000, "fuelType": "steam"},
        {"listPrice": 30000, "taxRate": 150},
        {"listPrice": "lots"},
        {"listPrice": 30000, "co2Emissions": "high"},
    ])
    def test_rejected(self, client, payload):
        assert client.post("/api/car-benefit", json=payload).status_code == 400


class TestTaxCodeApi:

    def test_standard(self, client):
        body = client.get("/api/tax-code/S1257L").get_json()
        assert body["valid"] is True
        assert body["region"] == "scotland"
        assert body["allowance"] == 12570.0
        assert body["specialRate"] is None

    def test_nt(self, client):
        body = client.get("/api/tax-code/NT").get_json()
        assert body["allowance"] == "unbounded"
        assert body["specialRate"] == "NT"

    def test_non_cumulative(self, client):
        body = client.get("/api/tax-code/1257LW1").get_json()
        assert body["isNonCumulative"] is True

    def test_invalid(self, client):
        body = client.get("/api/tax-code/HELLO").get_json()
        assert body["valid"] is False
        assert body["code"] == "1257L"
