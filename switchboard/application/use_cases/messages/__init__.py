from switchboard.application.use_cases.messages.hint_overlay import HintOverlay
from switchboard.application.use_cases.messages.message_store import MessageStore
from switchboard.application.use_cases.messages.scope_index import ScopeIndex

__all__ = ["HintOverlay", "MessageStore", "ScopeIndex"]
