import uuid

from conftest import make_token
from propreports.core.deps import get_report_service
from propreports.main import app
from propreports.services.record_source import RecordSourceError
from propreports.services.report_service import ReportService

Q2 = {"start_date": "2024-04-01", "end_date": "2024-06-30"}


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_root_and_version(client):
    assert client.get("/").json()["success"] is True
    version = client.get("/api/version").json()
    assert version["reports"] == ["financial", "occupancy", "tenants", "properties"]


def test_presets(client):
    response = client.get("/api/reports/presets")
    assert response.status_code == 200
    body = response.json()
    assert body["default"] == "last_6_months"
    assert body["max_span_days"] == 1825
    assert len(body["presets"]) == 6


def test_reports_require_a_token(client):
    assert client.get("/api/reports/financial", params=Q2).status_code == 401


def test_invalid_token_is_rejected(client):
    headers = {"Authorization": f"Bearer {make_token(secret='not-the-secret')}"}
    assert client.get("/api/reports/financial", params=Q2, headers=headers).status_code == 401


def test_financial_report(client, auth_headers):
    response = client.get("/api/reports/financial", params=Q2, headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["report_type"] == "financial"
    report = body["report"]
    assert [m["revenue"] for m in report["monthly_revenue"]] == [22000, 14000, 0]
    assert report["expenses_tracked"] is False
    assert report["date_range"]["start_date"] == "2024-04-01"


def test_default_preset_applies_without_dates(client, auth_headers):
    response = client.get("/api/reports/occupancy", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["report"]["date_range"]["preset"] == "last_6_months"


def test_named_preset(client, auth_headers):
    response = client.get("/api/reports/tenants", params={"preset": "year_to_date"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["report"]["date_range"]["preset"] == "year_to_date"


def test_range_longer_than_five_years_is_rejected(client, auth_headers):
    params = {"start_date": "2018-01-01", "end_date": "2024-01-01"}
    response = client.get("/api/reports/financial", params=params, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["detail"] == "Date range cannot exceed 5 years"


def test_inverted_range_is_rejected(client, auth_headers):
    params = {"start_date": "2024-06-01", "end_date": "2024-05-01"}
    response = client.get("/api/reports/occupancy", params=params, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["detail"] == "end_date must be on or after start_date"


def test_half_open_range_is_rejected(client, auth_headers):
    response = client.get("/api/reports/tenants", params={"start_date": "2024-01-01"}, headers=auth_headers)
    assert response.status_code == 422


def test_property_filter(client, auth_headers, portfolio):
    params = {**Q2, "property_id": str(portfolio["baobab"].id)}
    response = client.get("/api/reports/properties", params=params, headers=auth_headers)
    assert response.status_code == 200
    performance = response.json()["report"]["performance"]
    assert [p["property_name"] for p in performance] == ["Baobab House"]


def test_unknown_landlord_gets_an_empty_report(client):
    headers = {"Authorization": f"Bearer {make_token(subject=uuid.uuid4())}"}
    response = client.get("/api/reports/occupancy", params=Q2, headers=headers)
    assert response.status_code == 200
    stats = response.json()["report"]["overall_stats"]
    assert stats["total_units"] == 0
    assert stats["occupancy_rate"] == 0


def test_section_table(client, auth_headers):
    response = client.get(
        "/api/reports/financial/table",
        params={**Q2, "section": "rent_roll"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["headers"][0] == "Property"
    assert len(body["rows"]) == 4


def test_unknown_section_lists_the_available_ones(client, auth_headers):
    response = client.get(
        "/api/reports/occupancy/table",
        params={**Q2, "section": "nope"},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert "vacant_units" in response.json()["detail"]["sections"]


def test_unknown_report_is_404(client, auth_headers):
    response = client.get("/api/reports/leases/table", params={**Q2, "section": "x"}, headers=auth_headers)
    assert response.status_code == 404


def test_csv_export(client, auth_headers):
    response = client.get(
        "/api/reports/occupancy/export/csv",
        params={**Q2, "section": "vacant_units"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "occupancy_vacant_units_2024-04-01_2024-06-30.csv" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Property,Unit")
    assert "A3" in lines[1]


def test_stale_generation_gets_409(client, auth_headers):
    newer = {**auth_headers, "X-Filter-Generation": "5"}
    older = {**auth_headers, "X-Filter-Generation": "3"}

    assert client.get("/api/reports/financial", params=Q2, headers=newer).status_code == 200

    response = client.get("/api/reports/financial", params=Q2, headers=older)
    assert response.status_code == 409
    body = response.json()
    assert body == {"success": False, "stale": True, "generation": 3, "latest_generation": 5}


def test_generations_are_per_report(client, auth_headers):
    client.get("/api/reports/financial", params=Q2, headers={**auth_headers, "X-Filter-Generation": "9"})
    response = client.get("/api/reports/occupancy", params=Q2, headers={**auth_headers, "X-Filter-Generation": "1"})
    assert response.status_code == 200


def test_root_query_failure_returns_retryable_503(client, auth_headers):
    class BrokenSource:
        def properties(self):
            raise RecordSourceError("properties", ConnectionError("connection refused"))

        scope = type("Scope", (), {"landlord_id": "landlord"})()

    app.dependency_overrides[get_report_service] = lambda: ReportService(BrokenSource())
    response = client.get("/api/reports/financial", params=Q2, headers=auth_headers)
    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["retryable"] is True
