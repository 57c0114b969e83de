import pytest

pytestmark = pytest.mark.django_db


def test_openapi_schema_lists_engine_endpoints(client):
    res = client.get("/api/schema/", HTTP_ACCEPT="application/vnd.oai.openapi+json")
    assert res.status_code == 200
    paths = res.json()["paths"]
    assert "/api/v1/incidents/" in paths
    assert "/api/v1/cases/{id}/status/" in paths
    assert "/api/v1/cases/{id}/transitions/" in paths
