from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog


def log_action(
    db: Session,
    admin_user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    description: str | None = None,
) -> None:
    """
    Write an audit log entry.

    Args:
        db:            Active DB session (adds but does NOT commit — caller commits)
        admin_user_id: ID of the admin performing the action (None = customer or system)
        action:        Verb: CREATE, UPDATE, DELETE, STATUS_CHANGE, BLACKLIST, LOGIN, etc.
        entity_type:   Model name: "Booking", "Customer", "AvailabilityNote", etc.
        entity_id:     Primary key of the affected record
        description:   Human-readable description (shown in the admin activity feed)

    Usage:
        log_action(db, admin.id, "STATUS_CHANGE", "Booking", booking.id,
                   f"Booking {booking.booking_number}: pending -> waiting_payment")
        db.commit()
    """
    entry = AuditLog(
        admin_user_id=admin_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
    )
    db.add(entry)
    # Do NOT commit here — let the caller's transaction commit everything atomically
