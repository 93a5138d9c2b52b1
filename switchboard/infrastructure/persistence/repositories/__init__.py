"""SQLAlchemy repository implementations of the application protocols."""

from switchboard.infrastructure.persistence.repositories.delivery_repo import (
    DeliveryRepository,
    WebhookResponseRepository,
)
from switchboard.infrastructure.persistence.repositories.message_repo import MessageRepository
from switchboard.infrastructure.persistence.repositories.task_repo import TaskRepository
from switchboard.infrastructure.persistence.repositories.tenant_repo import TenantRepository
from switchboard.infrastructure.persistence.repositories.thread_repo import (
    ScopeBucketRepository,
    ThreadRepository,
)

__all__ = [
    "DeliveryRepository",
    "MessageRepository",
    "ScopeBucketRepository",
    "TaskRepository",
    "TenantRepository",
    "ThreadRepository",
    "WebhookResponseRepository",
]
