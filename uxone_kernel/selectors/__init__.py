"""Read-only query selectors."""

from uxone_kernel.selectors.base import BaseSelector
from uxone_kernel.selectors.workflow_selector import CommentDTO, WorkflowSelector

__all__ = ["BaseSelector", "CommentDTO", "WorkflowSelector"]
