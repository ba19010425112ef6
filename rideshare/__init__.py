from .celery import app as celery_app

# Expose celery app as a module-level symbol for `celery -A rideshare`
__all__ = ('celery_app',)
