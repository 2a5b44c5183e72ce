import pytest

from leadcrm.client import APIError, CRMClient
from leadcrm.sse import ChatStreamError


@pytest.fixture
def crm(client):
    return CRMClient(http=client)


def test_client_lead_and_application_flow(crm):
    lead = crm.create_lead(name="Kavya", email="kavya@example.com", phone="42", programInterest="1-Crore Club")
    app = crm.create_application(leadId=lead["id"], program="1-Crore Club")

    crm.update_lead(lead["id"], status="Interested")
    crm.update_application(app["id"], status="Accepted")

    assert crm.get_lead(lead["id"])["status"] == "Interested"
    assert crm.get_application(app["id"])["lead"]["name"] == "Kavya"
    assert [a["status"] for a in crm.list_applications()] == ["Accepted"]
    assert crm.dashboard_stats()["totalApplications"] == 1

    crm.delete_lead(lead["id"])
    assert crm.list_leads() == []
    with pytest.raises(APIError) as exc:
        crm.get_application(app["id"])
    assert exc.value.status_code == 404


def test_client_surfaces_validation_field(crm):
    with pytest.raises(APIError) as exc:
        crm.create_lead(name="X", email="x@example.com", phone="1", programInterest="Origami")

    assert exc.value.status_code == 400
    assert exc.value.field == "programInterest"


def test_client_chat(crm, completions):
    convo = crm.create_conversation("Exec coaching")

    reply = crm.send_message(convo["id"], "Which program suits a new VP?")

    assert reply == "Hello, world!"
    assert [m["role"] for m in crm.get_conversation(convo["id"])["messages"]] == ["user", "assistant"]
    assert crm.list_conversations()[0]["title"] == "Exec coaching"


def test_client_chat_failure(crm, completions):
    completions.fail_at = 1
    convo = crm.create_conversation()

    with pytest.raises(ChatStreamError, match="Sorry"):
        crm.send_message(convo["id"], "hi")


def test_client_chat_unknown_conversation(crm):
    with pytest.raises(APIError) as exc:
        crm.send_message(404, "hi")

    assert exc.value.status_code == 404
    assert exc.value.message == "Conversation not found"


def test_client_delete_conversation(crm):
    convo = crm.create_conversation()

    crm.delete_conversation(convo["id"])

    assert crm.list_conversations() == []
