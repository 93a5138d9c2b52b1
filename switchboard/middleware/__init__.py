"""HTTP middleware: timeout, request size limit, request ID, correlation ID, tenant context, security headers.

Applied in main app; order matters (first added = outermost).
"""

from switchboard.middleware.limits import RequestSizeLimitMiddleware, TimeoutMiddleware
from switchboard.middleware.request_context import (
    CorrelationIDMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from switchboard.middleware.tenant_context import TenantContextMiddleware

__all__ = [
    "CorrelationIDMiddleware",
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
    "TenantContextMiddleware",
    "TimeoutMiddleware",
]
