"""Domain entities."""
from .workflow import Step, Workflow, WorkflowErrorRecord, WorkflowOptions, WorkflowSnapshot

__all__ = ["Step", "Workflow", "WorkflowErrorRecord", "WorkflowOptions", "WorkflowSnapshot"]
