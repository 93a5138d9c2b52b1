from switchboard.application.use_cases.threads.thread_registry import ThreadRegistry

__all__ = ["ThreadRegistry"]
