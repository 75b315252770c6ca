"""
Tests for the health check endpoint.
"""


def test_health_check_returns_200(client):
    response = client.get("/health")
    assert response.status_code == 200


def test_health_check_returns_service_name(client):
    """
    Monitoring parses the service field, so its value must not
    drift.
    """
    data = client.get("/health").json()
    assert data["service"] == "ledger-poster"


def test_health_check_reports_database_status(client):
    data = client.get("/health").json()
    assert data["database"] in ("healthy", "unhealthy")


def test_health_check_counts_seeded_ledgers(client, chart):
    data = client.get("/health").json()
    assert data["status"] == "healthy"
    assert data["ledgers"] > 0


def test_unseeded_chart_has_no_ledgers(client):
    assert client.get("/health").json()["ledgers"] == 0
