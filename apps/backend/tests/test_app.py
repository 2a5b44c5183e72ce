from fastapi.testclient import TestClient

from leadcrm.main import create_app
from leadcrm.models.conversation import Conversation
from leadcrm.models.lead import Lead
from leadcrm.seed import seed_demo_data
from leadcrm.services.crm_gateway import CRMGateway, get_gateway


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["database"] == "ok"


def test_unknown_route_uses_message_body(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}


def test_unhandled_errors_do_not_leak_details(app, client):
    class BrokenGateway(CRMGateway):
        def list_leads(self):
            raise RuntimeError("password=hunter2 connection refused")

    app.dependency_overrides[get_gateway] = lambda: BrokenGateway(None)

    response = client.get("/api/leads")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}
    assert "hunter2" not in response.text


def test_seed_demo_data_runs_once(db):
    assert seed_demo_data(db) is True
    assert seed_demo_data(db) is False

    assert db.query(Lead).count() == 2
    assert [a.program for a in CRMGateway(db).list_applications()] == ["1-Crore Club"]
    assert db.query(Conversation).one().title == "Iron Lady Program Advisor"


def test_app_starts_with_lifespan():
    with TestClient(create_app()) as c:
        assert c.get("/health").json()["database"] == "ok"
        assert c.get("/api/leads/abc").json()["field"] == "id"
