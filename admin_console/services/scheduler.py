from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from admin_console.config import settings
from admin_console.logging_setup import log_event
from admin_console.services.social import SocialPostService

def publish_due_posts(db_factory: Callable[[], Session]) -> int:
    """
    Publish every scheduled social post whose time has come.
    Runs on an interval; each run opens and closes its own session.
    """
    db = db_factory()
    try:
        published = SocialPostService(db).publish_due()
        if published:
            log_event("scheduled_posts_published", count=published)
        return published
    except Exception as e:
        log_event("scheduled_publish_failed", level="error", error=str(e))
        raise
    finally:
        db.close()

def start_scheduler(db_factory: Callable[[], Session]) -> BackgroundScheduler:
    sched = BackgroundScheduler(timezone=settings.timezone)
    sched.add_job(
        publish_due_posts,
        trigger="interval",
        minutes=settings.scheduler_interval_minutes,
        args=[db_factory],
        id="publish_due_social_posts",
        replace_existing=True,
        max_instances=1,
    )
    sched.start()
    log_event("scheduler_started", interval_minutes=settings.scheduler_interval_minutes)
    return sched
