# src/task_minder/account/account_models.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class User:
    """user_id == "" means nobody is signed in."""

    user_id: str = ""
    is_anonymous: bool = True
