"""
Tests for the workforce analytics HTTP routes.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.features.workforce_analytics.api.router import get_analytics_service
from app.features.workforce_analytics.services.report_service import WorkforceAnalyticsService
from app.main import app

BASE = "/analytics/organizations/org-1"


@pytest.fixture
def seeded_store(fake_store):
    fake_store.add(
        "locations",
        id="loc-1",
        organization_id="org-1",
        is_active=True,
        name="Main",
        hours_json='{"saturday": {"open": "09:00", "close": "17:00"}}',
        stylist_capacity=1,
    )
    fake_store.add("employee_profiles", organization_id="org-1", user_id="user-1", is_active=True)
    fake_store.add(
        "phorest_staff_mapping",
        phorest_staff_id="ext-1",
        user_id="user-1",
        phorest_staff_name="Ana",
        is_active=True,
    )
    for _ in range(6):
        fake_store.add(
            "phorest_appointments",
            location_id="loc-1",
            phorest_staff_id="ext-1",
            appointment_date=date(2024, 3, 9),
            status="completed",
            total_price=80.0,
            tip_amount=8.0,
            rebooked_at_checkout=True,
        )
    fake_store.add(
        "phorest_daily_sales_summary",
        location_id="loc-1",
        phorest_staff_id="ext-1",
        summary_date=date(2024, 3, 9),
        total_revenue=480.0,
        service_revenue=480.0,
        product_revenue=0.0,
        total_transactions=6,
    )
    return fake_store


@pytest.fixture
def client(seeded_store):
    service = WorkforceAnalyticsService(seeded_store, page_size=5)
    app.dependency_overrides[get_analytics_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_staff_performance_report(client):
    response = client.get(
        f"{BASE}/staff-performance", params={"range": "7days", "reference_date": "2024-03-10"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["window"] == {
        "start_date": "2024-03-04",
        "end_date": "2024-03-10",
        "prior": {"start_date": "2024-02-26", "end_date": "2024-03-03", "prior": None},
    }
    assert data["summary"]["current"]["total_revenue"] == 480.0
    assert data["summary"]["revenue_evaluation"]["percent_change"] is None
    assert data["staff"][0]["identity"]["display_name"] == "Ana"
    assert data["scores"][0]["staff_id"] == "ext-1"
    assert data["scores"][0]["sample_size"] == 6
    assert data["excluded_from_scoring"] == []


def test_custom_range_and_no_comparison(client):
    response = client.get(
        f"{BASE}/staff-performance",
        params={
            "range": "custom",
            "date_from": "2024-03-09",
            "date_to": "2024-03-09",
            "compare": "false",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["window"]["prior"] is None
    assert data["summary"]["prior"] is None


@pytest.mark.parametrize(
    "params",
    [
        {"range": "fortnight"},
        {"range": "custom", "date_from": "2024-03-09"},
        {"range": "custom", "date_from": "2024-03-09", "date_to": "2024-03-01"},
    ],
)
def test_bad_range_is_400(client, params):
    response = client.get(f"{BASE}/staff-performance", params=params)

    assert response.status_code == 400


def test_source_failure_is_503(client, seeded_store):
    seeded_store.fail("phorest_appointments", RuntimeError("connection reset"))

    response = client.get(f"{BASE}/staff-performance", params={"reference_date": "2024-03-10"})

    assert response.status_code == 503
    assert response.json()["detail"] == "Analytics source unavailable: phorest_appointments"


def test_capacity_report(client):
    response = client.get(
        f"{BASE}/capacity", params={"period": "7days", "reference_date": "2024-03-10"}
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["days"]) == 7
    # Only Saturday is configured: 8h for one stylist
    assert data["total_available_hours"] == 8.0
    assert data["total_booked_hours"] == 6.0
    assert data["peak_day"]["day"] == "2024-03-09"
    assert data["stylist_count"] == 1
    assert data["service_mix"] == [
        {
            "category": "Other",
            "hours": 6.0,
            "revenue": 480.0,
            "appointment_count": 6,
            "percentage": 100.0,
        }
    ]
    assert data["breakdown"] == {
        "gross_hours_per_stylist": 8.0,
        "break_minutes": 0.0,
        "lunch_minutes": 0.0,
        "padding_minutes": 10.0,
        "stylist_count": 1,
        "days_in_period": 7,
    }


def test_capacity_unknown_period_is_400(client):
    response = client.get(f"{BASE}/capacity", params={"period": "next-fortnight"})

    assert response.status_code == 400


def test_request_id_header_is_echoed(client):
    response = client.get(
        f"{BASE}/capacity",
        params={"period": "tomorrow", "reference_date": "2024-03-10"},
        headers={"X-Request-ID": "req-123"},
    )

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-123"
