"""CRUD gateway for leads and applications (SQLAlchemy 2.x)."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from leadcrm.models.db import get_db
from leadcrm.models.lead import Lead
from leadcrm.models.application import Application
from leadcrm.schemas import (
    APPLICATION_STATUSES,
    ApplicationCreate,
    ApplicationUpdate,
    DashboardStats,
    LeadCreate,
    LeadUpdate,
)

logger = logging.getLogger(__name__)


class UnknownLeadError(Exception):
    """An application referenced a lead id that does not exist."""

    def __init__(self, lead_id: int):
        super().__init__(f"Lead {lead_id} not found")
        self.lead_id = lead_id


class CRMGateway:
    def __init__(self, db: Session):
        self.db = db

    # ───────────────────────── Leads ─────────────────────────
    def list_leads(self) -> list[Lead]:
        stmt = select(Lead).order_by(Lead.created_at.desc(), Lead.id.desc())
        return list(self.db.scalars(stmt))

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        return self.db.get(Lead, lead_id)

    def create_lead(self, data: LeadCreate) -> Lead:
        lead = Lead(**data.model_dump())
        self.db.add(lead)
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def update_lead(self, lead_id: int, data: LeadUpdate) -> Optional[Lead]:
        lead = self.db.get(Lead, lead_id)
        if not lead:
            return None
        for k, v in data.model_dump(exclude_unset=True).items():
            setattr(lead, k, v)
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def delete_lead(self, lead_id: int) -> None:
        """Delete a lead and every application that references it, atomically."""
        try:
            self.db.execute(delete(Application).where(Application.lead_id == lead_id))
            self.db.execute(delete(Lead).where(Lead.id == lead_id))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ─────────────────────── Applications ─────────────────────
    def list_applications(self) -> list[Application]:
        stmt = (
            select(Application)
            .options(selectinload(Application.lead))
            .order_by(Application.created_at.desc(), Application.id.desc())
        )
        return list(self.db.scalars(stmt))

    def get_application(self, application_id: int) -> Optional[Application]:
        stmt = (
            select(Application)
            .options(selectinload(Application.lead))
            .where(Application.id == application_id)
        )
        return self.db.scalars(stmt).first()

    def create_application(self, data: ApplicationCreate) -> Application:
        self._require_lead(data.lead_id)
        app = Application(**data.model_dump())
        self.db.add(app)
        self.db.commit()
        self.db.refresh(app)
        return app

    def update_application(self, application_id: int, data: ApplicationUpdate) -> Optional[Application]:
        app = self.db.get(Application, application_id)
        if not app:
            return None
        changes = data.model_dump(exclude_unset=True)
        if "lead_id" in changes:
            self._require_lead(changes["lead_id"])
        for k, v in changes.items():
            setattr(app, k, v)
        self.db.commit()
        self.db.refresh(app)
        return app

    def delete_application(self, application_id: int) -> None:
        self.db.execute(delete(Application).where(Application.id == application_id))
        self.db.commit()

    def _require_lead(self, lead_id: int) -> None:
        if self.db.get(Lead, lead_id) is None:
            logger.info("Rejecting application for unknown lead %s", lead_id)
            raise UnknownLeadError(lead_id)

    # ──────────────────────── Dashboard ───────────────────────
    def dashboard_stats(self) -> DashboardStats:
        lead_status = dict(self.db.execute(select(Lead.status, func.count()).group_by(Lead.status)).all())
        by_program = dict(
            self.db.execute(select(Lead.program_interest, func.count()).group_by(Lead.program_interest)).all()
        )
        app_status = dict(
            self.db.execute(select(Application.status, func.count()).group_by(Application.status)).all()
        )
        return DashboardStats(
            total_leads=sum(lead_status.values()),
            new_leads=lead_status.get("New", 0),
            enrolled_leads=lead_status.get("Enrolled", 0),
            closed_leads=lead_status.get("Closed", 0),
            total_applications=sum(app_status.values()),
            pending_applications=app_status.get("Under Review", 0),
            leads_by_program=by_program,
            applications_by_status={status: app_status.get(status, 0) for status in APPLICATION_STATUSES},
        )


def get_gateway(db: Session = Depends(get_db)) -> CRMGateway:
    return CRMGateway(db)
