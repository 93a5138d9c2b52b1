from switchboard.application.use_cases.workflows.runner import RunContext, WorkflowHandle, WorkflowRunner

__all__ = ["RunContext", "WorkflowHandle", "WorkflowRunner"]
