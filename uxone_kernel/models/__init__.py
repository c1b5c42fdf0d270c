"""ORM models. Importing this package registers every table on Base.metadata."""

from uxone_kernel.models.comment import WorkflowCommentModel
from uxone_kernel.models.notification import NotificationModel
from uxone_kernel.models.sequence import SequenceCounter
from uxone_kernel.models.user import UserModel
from uxone_kernel.models.workflow import WorkflowAggregateModel

__all__ = [
    "NotificationModel",
    "SequenceCounter",
    "UserModel",
    "WorkflowAggregateModel",
    "WorkflowCommentModel",
]
