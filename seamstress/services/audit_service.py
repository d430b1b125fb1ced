from __future__ import annotations

from sqlalchemy.orm import Session

from seamstress.models import AuditLog


def log_audit(
    db: Session,
    *,
    action: str,
    order_id: int | None = None,
    garment_id: int | None = None,
    ip: str | None = None,
    metadata: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            action=action,
            order_id=order_id,
            garment_id=garment_id,
            ip=ip,
            meta=metadata or {},
        )
    )
