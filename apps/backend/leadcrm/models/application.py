from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship
from .db import Base
from .lead import utcnow


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), index=True, nullable=False)
    program = Column(String, nullable=False)
    status = Column(String, nullable=False, default="Under Review")  # Under Review|Interview Scheduled|Accepted|Rejected
    notes = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, index=True)

    lead = relationship("Lead", back_populates="applications")
