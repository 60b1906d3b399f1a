from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal


Variant = Literal["default", "destructive"]


@dataclass(frozen=True)
class Notice:
    """Transient user-visible notification (a toast)."""

    title: str
    description: str
    variant: Variant = "default"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "variant": self.variant,
        }


def success(description: str) -> Notice:
    return Notice(title="Success", description=description)


def error(description: str) -> Notice:
    return Notice(title="Error", description=description, variant="destructive")
