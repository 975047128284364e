"""
Project Creation Wizard

Linear three-step flow: INFO -> DOCUMENTS -> TASKS.

TASKS needs the project's server-generated id because task rows refer
to it, so entering TASKS on a project that was never saved creates it
first. That precondition lives only in `_enter_tasks()`.
Going back to an already visited step is always allowed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set, TYPE_CHECKING

from .attachments import decode_attachments, encode_attachments

if TYPE_CHECKING:
    from ..data.repos.store import ResourceStore

logger = logging.getLogger(__name__)


class WizardStep(int, Enum):
    INFO = 1
    DOCUMENTS = 2
    TASKS = 3


class WizardError(Exception):
    """Transition not allowed from the current step"""


class ProjectCreationWizard:
    """State machine for creating (or editing) a project with its tasks"""

    def __init__(
        self,
        projects: "ResourceStore",
        tasks: Optional["ResourceStore"] = None,
        existing: Any = None,
        attachment_field: str = "document_url",
        parent_field: str = "project_id",
    ):
        self.projects = projects
        self.tasks = tasks
        self.attachment_field = attachment_field
        self.parent_field = parent_field

        self.step = WizardStep.INFO
        self.visited: Set[WizardStep] = {WizardStep.INFO}
        self.draft: Dict[str, Any] = {}
        self.parent_id: Any = None
        self.attachments: List[str] = []

        if existing is not None:
            # Editing: the parent already has an id, every step is reachable
            self.parent_id = existing.id
            self.draft = existing.model_dump(exclude={"id", "created_at"}, exclude_none=True)
            self.attachments = decode_attachments(self.draft.pop(attachment_field, None))
            self.visited = set(WizardStep)

    @property
    def is_persisted(self) -> bool:
        return self.parent_id is not None

    def update_info(self, **fields: Any) -> None:
        self.draft.update(fields)

    def add_attachment(self, reference: str) -> None:
        if reference and reference not in self.attachments:
            self.attachments.append(reference)

    def remove_attachment(self, reference: str) -> None:
        if reference in self.attachments:
            self.attachments.remove(reference)

    def payload(self) -> Dict[str, Any]:
        """Draft as it is written to the projects collection"""
        data = dict(self.draft)
        data[self.attachment_field] = encode_attachments(self.attachments)
        return data

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def next(self) -> WizardStep:
        """Advance one step"""
        if self.step == WizardStep.INFO:
            self._move_to(WizardStep.DOCUMENTS)
        elif self.step == WizardStep.DOCUMENTS:
            await self._enter_tasks()
        else:
            raise WizardError("Already on the last step")
        return self.step

    def back(self) -> WizardStep:
        """Go back one step"""
        if self.step == WizardStep.INFO:
            raise WizardError("Already on the first step")
        self._move_to(WizardStep(self.step - 1))
        return self.step

    async def go_to(self, step: WizardStep) -> WizardStep:
        """Jump to a visited step, or advance to the next one"""
        step = WizardStep(step)
        if step in self.visited and (step != WizardStep.TASKS or self.is_persisted):
            self._move_to(step)
        elif step == self.step + 1:
            await self.next()
        else:
            raise WizardError(f"Step {step.name} has not been reached yet")
        return self.step

    def _move_to(self, step: WizardStep) -> None:
        logger.debug(f"Wizard: {self.step.name} -> {step.name}")
        self.step = step
        self.visited.add(step)

    async def _enter_tasks(self) -> None:
        if not self.is_persisted:
            # Stays on DOCUMENTS if the create fails
            created = await self.projects.create(self.payload())
            if created is None:
                raise WizardError("The project was not returned after creation")
            self.parent_id = created.id
            logger.info(f"Wizard persisted project {self.parent_id}")
        self._move_to(WizardStep.TASKS)

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    async def save(self) -> Any:
        """Create the project, or update it when it already exists"""
        if self.is_persisted:
            return await self.projects.update(self.parent_id, self.payload())
        created = await self.projects.create(self.payload())
        if created is not None:
            self.parent_id = created.id
        return created

    async def add_task(self, partial: Dict[str, Any]) -> Any:
        """Create a task for this project; only possible on TASKS"""
        if self.tasks is None:
            raise WizardError("No task store configured")
        if self.step != WizardStep.TASKS or not self.is_persisted:
            raise WizardError("Tasks can only be added once the project exists")
        return await self.tasks.create({**partial, self.parent_field: self.parent_id})
