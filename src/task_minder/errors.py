# src/task_minder/errors.py

"""
Error taxonomy.

Every failure raised by a collaborator carries a `kind` tag so the log
collaborator (and tests) can tell authentication problems apart from
account lifecycle, configuration and storage failures.
"""

from __future__ import annotations


class TaskMinderError(Exception):
    kind = "generic"

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class AuthenticationError(TaskMinderError):
    kind = "authentication"


class AccountCreationError(TaskMinderError):
    kind = "account_creation"


class LinkAccountError(TaskMinderError):
    kind = "link_account"


class AccountDeletionError(TaskMinderError):
    kind = "account_deletion"


class SignOutError(TaskMinderError):
    kind = "sign_out"


class ConfigurationError(TaskMinderError):
    kind = "configuration"


class StorageError(TaskMinderError):
    kind = "storage"
