"""
Tests for the HTTP layer.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models import Activity, ActivityAction
from app.services.registry import get_services

from factories import auto_coverages, make_auto_application, make_claim_report


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


def application_body(customer_id, **overrides):
    return make_auto_application(customer_id, **overrides).model_dump(mode="json")


def issue(client, customer):
    response = client.post("/api/policies", json=application_body(customer.id))
    assert response.status_code == 201
    return response.json()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["database_connected"] is True
        assert body["status"] == "healthy"

    def test_root(self, client):
        response = client.get("/")
        assert response.json()["health"] == "/health"


class TestPolicyEndpoints:

    def test_issue_policy(self, client, customer):
        body = issue(client, customer)

        assert body["policy_number"] == "POL-2024-000001"
        assert body["status"] == "BOUND"
        assert Decimal(str(body["total_premium"])) == Decimal("640.00")
        assert body["tier"] == "PREFERRED"

    def test_missing_required_coverage(self, client, customer):
        payload = application_body(customer.id, coverages=auto_coverages()[:1])

        response = client.post("/api/policies", json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "MissingRequiredCoverage"
        assert body["missing_coverages"] == ["PD"]
        assert body["retryable"] is False

    def test_unknown_customer(self, client):
        response = client.post("/api/policies", json=application_body(uuid4()))

        assert response.status_code == 404
        assert response.json()["error"] == "CustomerNotFound"

    def test_malformed_application(self, client, customer):
        payload = application_body(customer.id)
        payload["product_type"] = "SPACESHIP"

        response = client.post("/api/policies", json=payload)

        assert response.status_code == 422

    def test_quote_revise_bind(self, client, customer):
        quote = client.post(
            "/api/policies/quote",
            json=application_body(customer.id, coverages=auto_coverages()[:1]),
        ).json()
        assert quote["status"] == "QUOTE"
        assert quote["missing_required"] == ["PD"]

        rejected = client.post(f"/api/policies/{quote['policy_id']}/bind")
        assert rejected.status_code == 422

        revised = client.put(
            f"/api/policies/{quote['policy_id']}/coverages",
            json={"coverages": [c.model_dump(mode="json") for c in auto_coverages()]},
        )
        assert revised.status_code == 200
        assert revised.json()["missing_required"] == []

        bound = client.post(f"/api/policies/{quote['policy_id']}/bind")
        assert bound.status_code == 200
        assert bound.json()["status"] == "BOUND"

    def test_empty_revision_is_rejected(self, client, customer):
        quote = client.post("/api/policies/quote", json=application_body(customer.id)).json()

        response = client.put(f"/api/policies/{quote['policy_id']}/coverages", json={"coverages": []})

        assert response.status_code == 422

    def test_status_change(self, client, customer):
        policy = issue(client, customer)

        activated = client.post(f"/api/policies/{policy['policy_id']}/status", json={"status": "ACTIVE"})
        assert activated.json()["status"] == "ACTIVE"

        invalid = client.post(f"/api/policies/{policy['policy_id']}/status", json={"status": "QUOTE"})
        assert invalid.status_code == 409
        assert invalid.json()["error"] == "InvalidStatusTransition"

    def test_get_policy(self, client, customer):
        policy = issue(client, customer)

        response = client.get(f"/api/policies/{policy['policy_id']}")

        assert response.status_code == 200
        assert [c["code"] for c in response.json()["coverages"]] == ["BI", "PD"]
        assert client.get(f"/api/policies/{uuid4()}").status_code == 404

    def test_actor_header_is_recorded(self, client, customer, session_factory):
        actor = uuid4()

        response = client.post(
            "/api/policies",
            json=application_body(customer.id),
            headers={"X-User-Id": str(actor)},
        )

        with session_factory() as session:
            created = session.query(Activity).filter(Activity.action == ActivityAction.CREATED).one()
        assert str(created.entity_id) == response.json()["policy_id"]
        assert created.user_id == actor


class TestClaimEndpoints:

    def test_file_and_fetch_claim(self, client, customer, adjusters):
        policy = issue(client, customer)
        report = make_claim_report(policy["policy_id"], customer.id).model_dump(mode="json")

        response = client.post("/api/claims", json=report)

        assert response.status_code == 201
        filed = response.json()
        assert filed["status"] == "OPEN"
        assert filed["assigned_adjuster_id"] == str(adjusters[0].id)

        detail = client.get(f"/api/claims/{filed['claim_id']}").json()
        assert detail["claim_number"] == filed["claim_number"]

    def test_claim_status(self, client, customer):
        policy = issue(client, customer)
        report = make_claim_report(policy["policy_id"], customer.id).model_dump(mode="json")
        filed = client.post("/api/claims", json=report).json()

        response = client.post(f"/api/claims/{filed['claim_id']}/status", json={"status": "INVESTIGATING"})

        assert response.status_code == 200
        assert response.json()["status"] == "INVESTIGATING"

    def test_claim_on_unknown_policy(self, client, customer):
        report = make_claim_report(uuid4(), customer.id).model_dump(mode="json")

        response = client.post("/api/claims", json=report)

        assert response.status_code == 404
        assert response.json()["error"] == "PolicyNotFound"

    def test_unknown_claim(self, client):
        assert client.get(f"/api/claims/{uuid4()}").status_code == 404
