from app.tasks.celery_app import celery
from app.tasks import worker_jobs

@celery.task(name="app.tasks.jobs.complete_elapsed_bookings")
def complete_elapsed_bookings():
    return worker_jobs.complete_elapsed_bookings()
