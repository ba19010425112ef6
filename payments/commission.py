"""Fixed marketplace prices, in whole Ugandan shillings."""

from decimal import Decimal, ROUND_HALF_UP

FARE_PER_SEAT = 4000

# Share of each fare kept by the platform
COMMISSION_RATE = Decimal('0.25')

SUBSCRIPTION_FEE = 6000
SUBSCRIPTION_PERIOD_DAYS = 7


def split_fare(total_fare):
    """Return ``(driver_amount, commission)`` for a fare in UGX.

    The commission is rounded half-up to a whole shilling and the driver
    receives the remainder, so the two parts always add up to the fare.
    """
    total_fare = int(total_fare)
    if total_fare < 0:
        raise ValueError("Fare cannot be negative")

    commission = int((Decimal(total_fare) * COMMISSION_RATE).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    return total_fare - commission, commission


def booking_fare(seats_booked, fare_per_seat=FARE_PER_SEAT):
    return int(seats_booked) * int(fare_per_seat)
