from urllib.parse import parse_qs, urlencode, urlparse

from celery import Celery
from app.core.config import settings


def broker_url(url: str) -> str:
    """TLS Redis (rediss://, e.g. Upstash) needs ssl_cert_reqs in the URL for Celery."""
    parsed = urlparse(url or "")
    if parsed.scheme != "rediss":
        return url
    query = parse_qs(parsed.query)
    query.setdefault("ssl_cert_reqs", ["CERT_NONE"])
    return parsed._replace(query=urlencode(query, doseq=True)).geturl()


celery = Celery("guardline", broker=broker_url(settings.REDIS_URL), backend=broker_url(settings.REDIS_URL),
                include=["app.tasks.jobs"])
celery.conf.timezone = settings.BOOKING_TIMEZONE
celery.conf.beat_schedule = {
    # confirmed -> completed once the window has passed
    "complete-elapsed-bookings-every-5-minutes": {
        "task": "app.tasks.jobs.complete_elapsed_bookings",
        "schedule": 300.0,
    },
}
