# src/task_minder/tasks/edit_session.py

from __future__ import annotations

"""
Task edit session (the add/edit task screen).

States:
    LOADING -> EDITING -> SAVING -> SAVED

- LOADING only exists when opened for an existing task id.
- A failed load or save goes back to EDITING; the runner shows the notice
  and logs the error.
- SAVED is terminal for the session; the caller navigates away (or calls
  reset_saved() to keep editing).
"""

import logging
from dataclasses import replace
from enum import StrEnum

from ..core.actions import ActionRunner
from ..core.ports import ConfigurationService, ReminderPort, TaskRepo
from .date_keys import format_due_time, millis_to_date_key
from .task_models import Task, blank_task

logger = logging.getLogger(__name__)


class EditState(StrEnum):
    LOADING = "loading"
    EDITING = "editing"
    SAVING = "saving"
    SAVED = "saved"


class TaskEditSession:
    def __init__(
        self,
        repo: TaskRepo,
        config: ConfigurationService,
        runner: ActionRunner,
        *,
        task_id: str | None = None,
        reminders: ReminderPort | None = None,
    ) -> None:
        self._repo = repo
        self._config = config
        self._runner = runner
        self._reminders = reminders
        self._task_id = task_id

        self.task: Task = blank_task()
        self.state = EditState.LOADING if task_id else EditState.EDITING
        self.is_alert_option_shown = True

    # ---- loading ----

    async def load(self) -> None:
        """Fetch the task being edited. Unknown ids fall back to a blank draft."""
        if self.state != EditState.LOADING or not self._task_id:
            return

        async def fetch() -> None:
            found = await self._repo.get_by_id(self._task_id or "")
            if found is None:
                logger.info("Task %s not found; editing a blank draft", self._task_id)
            self.task = found or blank_task()

        await self._runner.run(fetch)
        self.state = EditState.EDITING

    def refresh_alert_option(self) -> None:
        """Re-read the remote flag; call whenever the screen becomes visible."""
        self.is_alert_option_shown = self._config.show_alert_option_switch

    # ---- draft mutators ----

    def set_title(self, value: str) -> None:
        self.task = replace(self.task, title=value)

    def set_description(self, value: str) -> None:
        self.task = replace(self.task, description=value)

    def set_priority(self, value: str) -> None:
        self.task = replace(self.task, priority=value)

    def set_alert_enabled(self, value: bool) -> None:
        self.task = replace(self.task, alert=value)

    def set_due_date(self, epoch_millis: int) -> None:
        self.task = replace(self.task, due_date=millis_to_date_key(epoch_millis))

    def set_due_time(self, hour: int, minute: int) -> None:
        self.task = replace(self.task, due_time=format_due_time(hour, minute))

    @property
    def can_save(self) -> bool:
        t = self.task
        return bool(t.title.strip() and t.description.strip() and t.due_date.strip())

    # ---- commit ----

    async def save(self) -> bool:
        if self.state != EditState.EDITING:
            logger.debug("save() ignored in state %s", self.state)
            return False
        if not self.can_save:
            logger.debug("save() ignored: title/description/due date missing")
            return False

        self.state = EditState.SAVING
        ok = await self._runner.run(self._commit)
        self.state = EditState.SAVED if ok else EditState.EDITING
        return ok

    async def _commit(self) -> None:
        draft = self.task
        if draft.is_new:
            new_id = await self._repo.create(draft)
            self.task = replace(draft, id=new_id)
            logger.info("Task created id=%s", new_id)
        else:
            await self._repo.update(draft)
            logger.info("Task updated id=%s", draft.id)

        if self._reminders is not None:
            # schedule() disarms tasks whose alert is off.
            self._reminders.schedule(self.task)

    def reset_saved(self) -> None:
        if self.state == EditState.SAVED:
            self.state = EditState.EDITING
