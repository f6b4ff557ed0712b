"""
Clock dependency. Booking rules compare against "now"; routers take it from here
so it can be overridden.
"""
from datetime import datetime


def get_now() -> datetime:
    return datetime.now()
