from kanban.services.columns import ColumnService
from kanban.services.comments import CommentService
from kanban.services.tasks import TaskService

__all__ = ["ColumnService", "CommentService", "TaskService"]
