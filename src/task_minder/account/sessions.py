# src/task_minder/account/sessions.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import re

from ..core.actions import ActionRunner
from ..core.ports import AccountService, ConfigurationService, NoticeSink

logger = logging.getLogger(__name__)

MIN_PASS_LENGTH = 6
_PASS_PATTERN = re.compile(r"^(?=.*[0-9])(?=.*[a-z])(?=.*[A-Z])\S{6,}$")
_EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")

EMAIL_ERROR = "Please insert a valid email."
EMPTY_PASSWORD_ERROR = "Password cannot be empty."
PASSWORD_RULES_ERROR = (
    "Your password should have at least six characters and include "
    "one digit, one lower case letter and one upper case letter."
)
PASSWORD_MATCH_ERROR = "Passwords do not match."


def is_email_valid(email: str) -> bool:
    return bool(email.strip()) and _EMAIL_PATTERN.match(email.strip()) is not None


def is_password_valid(password: str) -> bool:
    return len(password) >= MIN_PASS_LENGTH and _PASS_PATTERN.match(password) is not None


def password_matches(password: str, confirm_password: str) -> bool:
    return password == confirm_password


class SplashSession:
    """
    Startup screen.

    - fetches remote config (failures are logged only; cached/default flags stay)
    - start_the_app(): reuse the signed-in identity or create an anonymous one
    - anonymous creation failure sets the persistent `show_error` state;
      the caller retries by calling start_the_app() again
    """

    def __init__(
        self, account: AccountService, config: ConfigurationService, runner: ActionRunner
    ) -> None:
        self._account = account
        self._config = config
        self._runner = runner
        self.is_account_ready = False
        self.show_error = False

    async def fetch_configuration(self) -> bool:
        return await self._runner.run(self._config.fetch_and_activate, notice=False)

    async def start_the_app(self) -> bool:
        self.show_error = False
        if self._account.is_user_signed_in:
            self.is_account_ready = True
            return True

        async def create() -> None:
            try:
                await self._account.create_anonymous_account()
            except Exception:
                self.show_error = True
                raise
            self.is_account_ready = True

        await self._runner.run(create, notice=False)
        return self.is_account_ready


class LoginSession:
    def __init__(self, account: AccountService, runner: ActionRunner, notices: NoticeSink) -> None:
        self._account = account
        self._runner = runner
        self._notices = notices
        self.email = ""
        self.password = ""
        self.is_sign_in_succeeded = False

    def set_email(self, value: str) -> None:
        self.email = value

    def set_password(self, value: str) -> None:
        self.password = value

    async def sign_in(self) -> bool:
        if not is_email_valid(self.email):
            self._notices.show(EMAIL_ERROR)
            return False
        if not self.password.strip():
            self._notices.show(EMPTY_PASSWORD_ERROR)
            return False

        async def authenticate() -> None:
            await self._account.authenticate(self.email, self.password)
            self.is_sign_in_succeeded = True

        return await self._runner.run(authenticate)

    def reset_sign_in_succeeded(self) -> None:
        self.is_sign_in_succeeded = False


class SignUpSession:
    """Turns the current anonymous identity into an email/password account."""

    def __init__(self, account: AccountService, runner: ActionRunner, notices: NoticeSink) -> None:
        self._account = account
        self._runner = runner
        self._notices = notices
        self.email = ""
        self.password = ""
        self.confirm_password = ""
        self.is_account_created = False

    def set_email(self, value: str) -> None:
        self.email = value

    def set_password(self, value: str) -> None:
        self.password = value

    def set_confirm_password(self, value: str) -> None:
        self.confirm_password = value

    async def create_account(self) -> bool:
        if not is_email_valid(self.email):
            self._notices.show(EMAIL_ERROR)
            return False
        if not is_password_valid(self.password):
            self._notices.show(PASSWORD_RULES_ERROR)
            return False
        if not password_matches(self.password, self.confirm_password):
            self._notices.show(PASSWORD_MATCH_ERROR)
            return False

        async def link() -> None:
            await self._account.link_account(self.email, self.password)
            self.is_account_created = True

        return await self._runner.run(link)

    def reset_account_created(self) -> None:
        self.is_account_created = False


class AccountSession:
    """Account screen: anonymous flag from the live user stream, sign-out, delete."""

    def __init__(self, account: AccountService, runner: ActionRunner) -> None:
        self._account = account
        self._runner = runner
        self.is_anonymous_account = True
        self.is_account_signed_out = False
        self.is_account_deleted = False
        self._watcher: asyncio.Task[None] | None = None

    async def _watch(self) -> None:
        async with contextlib.aclosing(self._account.current_user()) as users:
            async for user in users:
                self.is_anonymous_account = user.is_anonymous

    def start(self) -> None:
        if self._watcher is None or self._watcher.done():
            self._watcher = asyncio.create_task(self._watch())

    async def close(self) -> None:
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    async def __aenter__(self) -> AccountSession:
        self.start()
        # Let the watcher pick up the current user before the caller reads it.
        await asyncio.sleep(0)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def sign_out(self) -> bool:
        async def action() -> None:
            await self._account.sign_out()
            self.is_account_signed_out = True

        return await self._runner.run(action)

    async def delete_account(self) -> bool:
        async def action() -> None:
            await self._account.delete_account()
            self.is_account_deleted = True

        return await self._runner.run(action)

    def reset_signed_out(self) -> None:
        self.is_account_signed_out = False

    def reset_deleted(self) -> None:
        self.is_account_deleted = False
