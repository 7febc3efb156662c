"""slowapi limiter shared by the report router and the app factory.

Report endpoints recompute every balance from raw history on each call, so
the CSV export carries a tighter per-route limit on top of the default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leave_insights.config import settings

EXPORT_RATE_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
