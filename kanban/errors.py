from __future__ import annotations


class KanbanError(Exception):
  """Base for errors raised by stores and services; mapped to HTTP at the edge."""

  status_code = 500

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class NotFound(KanbanError):
  status_code = 404


class InvalidReference(KanbanError):
  status_code = 400


class Forbidden(KanbanError):
  status_code = 403


class Conflict(KanbanError):
  status_code = 409


class DuplicateTitle(Conflict):
  pass


class HasTasks(Conflict):
  pass


class LastColumn(Conflict):
  pass


class SameColumn(Conflict):
  pass


class StorageFailure(KanbanError):
  status_code = 500


class AuditFailure(RuntimeError):
  pass
