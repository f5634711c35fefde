# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# FastAPI routers organized by feature:
# - health.py: Liveness and readiness checks
# - lessons.py: Dashboard lesson lists, stats and status changes
# - notifications.py: Inbox, unread counter, mark as read
# - payments.py: Teacher payments and earnings summary
# - bookings.py: Bookings, booking requests and learning modules
# - teachers.py: Teacher profiles, ratings and availability
# - uploads.py: Profile image upload/delete
# - diagnostics.py: Schema existence report
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import lessons
from . import notifications
from . import payments
from . import bookings
from . import teachers
from . import uploads
from . import diagnostics

__all__ = [
    "health",
    "lessons",
    "notifications",
    "payments",
    "bookings",
    "teachers",
    "uploads",
    "diagnostics",
]
