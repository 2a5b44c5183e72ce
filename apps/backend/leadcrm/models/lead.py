from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Lead(Base):
    __tablename__ = "leads"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    phone = Column(String, nullable=False)
    program_interest = Column(String, nullable=False)
    status = Column(String, nullable=False, default="New")  # New|Contacted|Interested|Enrolled|Closed
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, index=True)

    # Deletion is handled explicitly by the gateway, not by ORM cascade
    applications = relationship("Application", back_populates="lead", passive_deletes="all")
