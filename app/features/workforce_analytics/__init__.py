"""
Workforce analytics feature package.

Every layer of the staff performance engine lives here: the record store
and paginated fetcher, typed source repositories, the window, identity,
aggregation, scoring and evaluation pipeline, the report service and the
HTTP router.
"""

from .api.router import router as analytics_router  # noqa: F401
from .services.report_service import (  # noqa: F401
    WorkforceAnalyticsService,
    workforce_analytics_service,
)
from .domain.models import (  # noqa: F401
    CapacityReport,
    StaffPerformanceReport,
    ThresholdPolicy,
)
