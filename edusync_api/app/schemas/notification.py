"""
Toast notifications.

Every user-visible outcome of a data operation (success or failure) is
reported as a ``Toast``, the same short title/description pair a
browser dashboard would pop up.  Destructive toasts describe failures.
"""

from typing import Literal

from pydantic import BaseModel


class Toast(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


def success(title: str, description: str) -> Toast:
    return Toast(title=title, description=description)


def failure(title: str, description: str) -> Toast:
    return Toast(title=title, description=description, variant="destructive")
