"""
Celery tasks for work that must not run on the request path

Tasks:
- fanout_drive: notify eligible students about a created/updated drive
- close_expired_drives: periodic deadline sweep (Celery beat)
"""
import logging
from typing import Any, Dict

from app.celery_app import celery_app
from app.database import SessionLocal
from app.repositories.drives import SqlDriveStore
from app.services import drive_lifecycle
from app.services.drive_snapshot import DriveSnapshot
from app.services.fanout import EventKind, build_coordinator

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.fanout_drive", soft_time_limit=1500, time_limit=1800)
def fanout_drive(snapshot_payload: Dict[str, Any], event: str) -> Dict[str, Any]:
    """
    Send push + WhatsApp notifications for a committed drive.

    Args:
        snapshot_payload: DriveSnapshot.to_payload() captured right after commit
        event: "created" or "updated"

    Returns:
        the fan-out summary as a dict (also logged)
    """
    db = SessionLocal()
    try:
        snapshot = DriveSnapshot.from_payload(snapshot_payload)
        summary = build_coordinator(db).run(snapshot, EventKind(event))
        result = summary.as_log_dict()
        logger.info("fanout_drive summary: %s", result)
        return result
    except Exception as e:
        logger.exception("fanout_drive: fatal error for payload id=%s", snapshot_payload.get("id"))
        return {"drive_id": snapshot_payload.get("id"), "event": event, "error": str(e)}
    finally:
        db.close()


@celery_app.task(name="app.tasks.close_expired_drives")
def close_expired_drives() -> Dict[str, int]:
    """Close open drives whose deadline has passed."""
    db = SessionLocal()
    try:
        closed = drive_lifecycle.close_expired(SqlDriveStore(db))
        return {"closed": closed}
    except Exception as e:
        db.rollback()
        logger.error("close_expired_drives failed: %s", e)
        return {"closed": 0, "error": str(e)}
    finally:
        db.close()


def enqueue_fanout(snapshot: DriveSnapshot, event: EventKind) -> None:
    """
    Hand a committed drive to the fan-out worker.

    Called after commit only. A broker outage is logged and swallowed: the
    drive write already succeeded and must stay that way.
    """
    try:
        celery_app.send_task(
            "app.tasks.fanout_drive",
            args=[snapshot.to_payload(), EventKind(event).value],
        )
    except Exception as e:
        logger.error("Could not enqueue fan-out for drive %s (%s): %s", snapshot.id, event, e)
