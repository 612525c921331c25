from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from models.damage_report import DamageReport, ReportStatus
from services.errors import NotFoundError
from services.events import emit_event

logger = logging.getLogger(__name__)

REPORT_UPDATED = "report_updated"


async def create_report(db: AsyncSession, data: dict[str, Any]) -> DamageReport:
    report = DamageReport(id=uuid.uuid4(), status=ReportStatus.PENDING, **data)
    db.add(report)
    await db.flush()
    logger.info("Created damage report %s (%s)", report.id, report.type)
    return report


async def get_report(db: AsyncSession, report_id: uuid.UUID) -> DamageReport:
    report = await db.get(DamageReport, report_id)
    if report is None:
        raise NotFoundError("Damage report", report_id, code="REPORT_NOT_FOUND")
    return report


async def update_report(db: AsyncSession, report_id: uuid.UUID, changes: dict[str, Any]) -> DamageReport:
    report = await get_report(db, report_id)
    previous_status = report.status

    for name, value in changes.items():
        setattr(report, name, value)

    if report.status != previous_status:
        payload = {"reportId": str(report.id), "status": report.status}
        if report.chat_id is not None:
            payload["chatId"] = str(report.chat_id)
        await emit_event(db, REPORT_UPDATED, "damage_report", report.id, payload)

    await db.flush()
    return report
