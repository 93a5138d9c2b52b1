from switchboard.application.use_cases.tasks.task_service import TaskService
from switchboard.application.use_cases.tasks.wait_coordinator import DurableWaitCoordinator

__all__ = ["DurableWaitCoordinator", "TaskService"]
