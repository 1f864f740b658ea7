from datetime import datetime
import pytz


def billing_today(tz_name="UTC"):
    """Calendar date of 'now' in the billing timezone."""
    return datetime.now(pytz.timezone(tz_name)).date()
