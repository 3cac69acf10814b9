from __future__ import annotations

from dataclasses import dataclass

from kanban.models import User


@dataclass(frozen=True)
class Actor:
  id: int
  is_root: bool = False

  @classmethod
  def from_user(cls, user: User) -> "Actor":
    return cls(id=user.id, is_root=bool(user.is_root))


def can_mutate(actor: Actor, owner_id: int | None) -> bool:
  return actor.is_root or (owner_id is not None and actor.id == owner_id)
