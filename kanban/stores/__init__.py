from kanban.stores.activities import ActivityRow, ActivityStore
from kanban.stores.checklists import ChecklistStore
from kanban.stores.columns import ColumnStore
from kanban.stores.comments import CommentRow, CommentStore
from kanban.stores.refresh_tokens import RefreshTokenStore
from kanban.stores.settings import SettingsStore
from kanban.stores.tasks import TaskFilters, TaskRow, TaskStore
from kanban.stores.users import UserFilters, UserStore

__all__ = [
  "ActivityRow",
  "ActivityStore",
  "ChecklistStore",
  "ColumnStore",
  "CommentRow",
  "CommentStore",
  "RefreshTokenStore",
  "SettingsStore",
  "TaskFilters",
  "TaskRow",
  "TaskStore",
  "UserFilters",
  "UserStore",
]
