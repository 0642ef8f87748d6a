"""
Celery periodic tasks for ephemeral content.

Runs on a schedule via Celery Beat, detached from request handling.
"""
import logging

from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError

from app.features.auth.repositories.verification_repo import purge_expired_verifications
from app.features.stories.services.story_service import purge_expired_stories
from app.platform.db.session import get_sync_db

logger = logging.getLogger(__name__)


@shared_task(name="app.features.stories.workers.periodic_tasks.cleanup_expired_content")
def cleanup_expired_content() -> dict:
    """
    Delete expired stories, verification codes and spent verification sessions.

    Runs every minute. Failures are logged and swallowed so the schedule keeps
    going; reads already filter expired rows, so a missed sweep is harmless.
    """
    db = get_sync_db()
    summary = {"stories": 0, "verifications": 0}
    try:
        summary["stories"] = purge_expired_stories(db)
        summary["verifications"] = purge_expired_verifications(db)
        if summary["stories"] or summary["verifications"]:
            logger.info(
                f"Expired content removed - stories: {summary['stories']}, "
                f"verifications: {summary['verifications']}"
            )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error cleaning up expired content: {e}")
    finally:
        db.close()
    return summary
