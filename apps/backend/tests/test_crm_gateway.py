import pytest

from leadcrm.models.application import Application
from leadcrm.models.lead import Lead
from leadcrm.schemas import ApplicationCreate, LeadCreate, LeadUpdate
from leadcrm.services.crm_gateway import CRMGateway, UnknownLeadError


def _lead(gateway, **overrides):
    fields = dict(name="Meera", email="meera@example.com", phone="999", program_interest="Leadership Masterclass")
    fields.update(overrides)
    return gateway.create_lead(LeadCreate(**fields))


def test_update_missing_lead_returns_none(db):
    assert CRMGateway(db).update_lead(404, LeadUpdate(status="Closed")) is None


def test_delete_lead_is_atomic(db, session_factory, monkeypatch):
    gateway = CRMGateway(db)
    lead = _lead(gateway)
    gateway.create_application(ApplicationCreate(lead_id=lead.id, program="1-Crore Club"))

    def fail_commit():
        raise RuntimeError("crash between statements")

    monkeypatch.setattr(db, "commit", fail_commit)
    with pytest.raises(RuntimeError):
        gateway.delete_lead(lead.id)

    with session_factory() as fresh:
        assert fresh.get(Lead, lead.id) is not None
        assert fresh.query(Application).filter_by(lead_id=lead.id).count() == 1


def test_create_application_requires_existing_lead(db):
    with pytest.raises(UnknownLeadError) as exc:
        CRMGateway(db).create_application(ApplicationCreate(lead_id=55, program="1-Crore Club"))
    assert exc.value.lead_id == 55


def test_dashboard_stats(db):
    gateway = CRMGateway(db)
    a = _lead(gateway)
    _lead(gateway, status="Closed", program_interest="1-Crore Club")
    _lead(gateway, status="Enrolled", program_interest="1-Crore Club")
    gateway.create_application(ApplicationCreate(lead_id=a.id, program="Leadership Masterclass"))
    gateway.create_application(ApplicationCreate(lead_id=a.id, program="1-Crore Club", status="Accepted"))

    stats = gateway.dashboard_stats()

    assert stats.total_leads == 3
    assert stats.new_leads == 1
    assert stats.closed_leads == 1
    assert stats.enrolled_leads == 1
    assert stats.total_applications == 2
    assert stats.pending_applications == 1
    assert stats.leads_by_program == {"Leadership Masterclass": 1, "1-Crore Club": 2}
    assert stats.applications_by_status == {
        "Under Review": 1,
        "Interview Scheduled": 0,
        "Accepted": 1,
        "Rejected": 0,
    }


def test_dashboard_endpoint_uses_camel_case(client, make_lead):
    make_lead()

    body = client.get("/api/dashboard/stats").json()

    assert body["totalLeads"] == 1
    assert body["newLeads"] == 1
    assert body["leadsByProgram"] == {"1-Crore Club": 1}
    assert body["applicationsByStatus"]["Under Review"] == 0
