import logging

from celery import shared_task

from .exceptions import PaymentNotFound
from .services import expire_subscriptions, finalize_payment

logger = logging.getLogger(__name__)


@shared_task
def complete_sandbox_payment(payment_id):
    """Simulated provider callback: settle the payment as successful."""
    try:
        payment = finalize_payment(payment_id)
    except PaymentNotFound:
        logger.warning("Sandbox settlement skipped, payment %s is gone", payment_id)
        return None
    return payment.status


@shared_task
def expire_driver_subscriptions():
    expired = expire_subscriptions()
    if expired:
        logger.info("Expired %s driver subscription(s)", expired)
    return expired
