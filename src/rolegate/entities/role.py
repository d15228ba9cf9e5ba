"""Role domain entity.

A role is a named, shareable bundle of abilities. Its lifetime is
independent of any principal holding it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..core.exceptions import InvalidNameError
from .titles import humanize


@dataclass(frozen=True)
class Role:
    """Immutable role value object, identified by its case-sensitive name."""

    name: str
    title: Optional[str] = field(default=None, compare=False)
    id: Optional[int] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidNameError("Role", self.name)

        if self.title is None:
            object.__setattr__(self, "title", humanize(self.name))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "title": self.title}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Role":
        return cls(name=data["name"], title=data.get("title"), id=data.get("id"))

    def __str__(self) -> str:
        return self.name
