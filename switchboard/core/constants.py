"""Core constants: cache key prefixes, channel names and shared literal values."""

# Cache key prefixes
CACHE_PREFIX_TENANT = "tenant"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Redis pub/sub channel prefix; full channel is conversation:{tenant_id}
CONVERSATION_CHANNEL_PREFIX = "conversation"

# Conversation event kinds published on the tenant channel
EVENT_THREAD_CREATED = "thread_created"
EVENT_MESSAGE_APPENDED = "message_appended"
EVENT_MESSAGE_DELIVERED = "message_delivered"
EVENT_TASK_COMPLETED = "task_completed"

# Subject claim of tenant API keys
API_KEY_SUBJECT = "tenant-api-key"

# Metadata keys written on routed messages
META_AGENT_NAME = "agentName"
META_ACTIVATION_NAME = "activationName"
META_WEBHOOK_NAME = "webhookName"
META_SENT_AS = "sentAsWorkflow"
META_SENDER_WORKFLOW = "senderWorkflowId"
META_A2A = "a2a"
