from switchboard.application.use_cases.delivery.a2a import A2AClient
from switchboard.application.use_cases.delivery.message_context import MessageContext
from switchboard.application.use_cases.delivery.router import DeliveryRouter
from switchboard.application.use_cases.delivery.webhook_broker import WebhookBroker

__all__ = ["A2AClient", "DeliveryRouter", "MessageContext", "WebhookBroker"]
