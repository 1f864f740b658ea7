# backoffice/services/billing_cycle.py
"""
Calendar arithmetic for billing periods.

A subscription's ``next_billing_date`` is the first day of its next unbilled
period. For WEEKLY plans the end of one period is the start of the next, so the
boundary date is shared. For MONTHLY plans the next billing date moves one month
past the period end and lands on the subscription's billing day.
"""
import calendar
from datetime import timedelta

from dateutil.relativedelta import relativedelta

from backoffice.models.plan import BillingCycle

ROLLOVER = "rollover"
CLAMP = "clamp"

# Index matches date.weekday()
WEEKDAYS = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]
DEFAULT_WEEKDAY = "MONDAY"
DEFAULT_TRIAL_DAYS = 7


def parse_billing_day(billing_day):
    """Day-of-month from a billing day, clamped to 1..31. Unparseable or zero means 1."""
    try:
        day = int(str(billing_day).strip())
    except (TypeError, ValueError):
        day = 0
    if not day:
        day = 1
    return max(1, min(31, day))


def _on_day(month_anchor, day, overflow=ROLLOVER):
    first = month_anchor.replace(day=1)
    if overflow == CLAMP:
        last = calendar.monthrange(first.year, first.month)[1]
        return first.replace(day=min(day, last))
    # excess days spill into the following month (day 31 of a 30-day month is the 1st)
    return first + timedelta(days=day - 1)


def next_billing_date(period_end_date, billing_cycle, billing_day, overflow=ROLLOVER):
    if billing_cycle == BillingCycle.WEEKLY:
        return period_end_date
    if billing_cycle == BillingCycle.MONTHLY:
        return _on_day(period_end_date + relativedelta(months=1), parse_billing_day(billing_day), overflow)
    return period_end_date


def period_end(period_start, billing_cycle):
    """End boundary of the period that starts on ``period_start``."""
    if billing_cycle == BillingCycle.WEEKLY:
        return period_start + timedelta(days=7)
    if billing_cycle == BillingCycle.MONTHLY:
        return period_start + relativedelta(months=1)
    return period_start


def overlaps(a_start, a_end, b_start, b_end):
    """Inclusive on both ends: windows touching on a single day overlap."""
    return a_start <= b_end and a_end >= b_start


def normalize_billing_day(billing_cycle, billing_day):
    value = str(billing_day or "").strip()
    if billing_cycle == BillingCycle.WEEKLY:
        return value.upper() or DEFAULT_WEEKDAY
    if billing_cycle == BillingCycle.MONTHLY:
        return value or "1"
    return value


def initial_next_billing_date(today, billing_cycle, billing_day, trial_days=None, overflow=ROLLOVER):
    """First billing date for a subscription created (or re-planned) on ``today``."""
    if billing_cycle == BillingCycle.WEEKLY:
        weekday = normalize_billing_day(billing_cycle, billing_day)
        if weekday not in WEEKDAYS:
            weekday = DEFAULT_WEEKDAY
        days_ahead = WEEKDAYS.index(weekday) - today.weekday()
        if days_ahead <= 0:
            days_ahead += 7
        return today + timedelta(days=days_ahead)
    if billing_cycle == BillingCycle.MONTHLY:
        return _on_day(today + relativedelta(months=1), parse_billing_day(billing_day), overflow)
    if billing_cycle == BillingCycle.TRIAL:
        return today + timedelta(days=trial_days or DEFAULT_TRIAL_DAYS)
    return today
