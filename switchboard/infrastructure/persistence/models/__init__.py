"""Persistence models: ORM entities and mixins."""

from switchboard.infrastructure.persistence.models.delivery import MessageDelivery, WebhookResponseRecord
from switchboard.infrastructure.persistence.models.message import Message
from switchboard.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
    TenantMixin,
    TimestampMixin,
)
from switchboard.infrastructure.persistence.models.task import Task
from switchboard.infrastructure.persistence.models.tenant import Tenant
from switchboard.infrastructure.persistence.models.thread import Thread, ThreadScope

__all__ = [
    "CreatedAtMixin",
    "CuidMixin",
    "Message",
    "MessageDelivery",
    "MultiTenantModel",
    "Task",
    "TenantMixin",
    "Tenant",
    "Thread",
    "ThreadScope",
    "TimestampMixin",
    "WebhookResponseRecord",
]
