# solarshare/conf.py
from django.conf import settings


def solarshare_setting(name):
    """Read one entry of the ``SOLARSHARE`` settings dict at call time."""
    return settings.SOLARSHARE[name]
