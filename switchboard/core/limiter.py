"""Rate limiter instance for SlowAPI.

Shared so main (app.state.limiter) and route modules use the same instance
without circular imports.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

CREATE_TENANT_LIMIT = "5/minute"
SEND_LIMIT = "300/minute"
WEBHOOK_LIMIT = "600/minute"
TASK_ACTION_LIMIT = "120/minute"

limit_create_tenant = limiter.limit(CREATE_TENANT_LIMIT)
limit_send = limiter.limit(SEND_LIMIT)
limit_webhook = limiter.limit(WEBHOOK_LIMIT)
limit_task_action = limiter.limit(TASK_ACTION_LIMIT)
