import logging

from sqlalchemy.orm import Session

from leadcrm.schemas import ApplicationCreate, LeadCreate
from leadcrm.services.chat_relay import ConversationStore
from leadcrm.services.crm_gateway import CRMGateway

logger = logging.getLogger(__name__)


def seed_demo_data(db: Session) -> bool:
    """Insert demo leads, an application and an advisor conversation into an empty database."""
    gateway = CRMGateway(db)
    if gateway.list_leads():
        return False

    gateway.create_lead(LeadCreate(
        name="Priya Sharma",
        email="priya@example.com",
        phone="+91 98765 43210",
        program_interest="Leadership Masterclass",
        status="Contacted",
    ))
    anjali = gateway.create_lead(LeadCreate(
        name="Anjali Gupta",
        email="anjali@example.com",
        phone="+91 98765 43211",
        program_interest="1-Crore Club",
        status="Interested",
    ))
    gateway.create_application(ApplicationCreate(
        lead_id=anjali.id,
        program="1-Crore Club",
        status="Interview Scheduled",
        notes="High potential candidate, current VP at Tech Corp.",
    ))
    ConversationStore(db).create_conversation("Iron Lady Program Advisor")
    logger.info("Seeded demo data")
    return True
