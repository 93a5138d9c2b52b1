"""Ports: repository and service protocols implemented by infrastructure."""

from switchboard.application.interfaces.repositories import (
    IDeliveryRepository,
    IMessageRepository,
    IRepositoryProvider,
    IScopeBucketRepository,
    ITaskRepository,
    ITenantRepository,
    IThreadRepository,
    IWebhookResponseRepository,
    Repositories,
)
from switchboard.application.interfaces.services import IConversationEventPublisher, ITransport

__all__ = [
    "IConversationEventPublisher",
    "IDeliveryRepository",
    "IMessageRepository",
    "IRepositoryProvider",
    "IScopeBucketRepository",
    "ITaskRepository",
    "ITenantRepository",
    "IThreadRepository",
    "ITransport",
    "IWebhookResponseRepository",
    "Repositories",
]
