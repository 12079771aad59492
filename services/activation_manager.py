import logging

from models.errors import DefinitionNotFound
from services.contracts import RecurringDefinitionStore

logger = logging.getLogger(__name__)


class ActivationManager:
    """Pauses and resumes recurring definitions.

    Only the active flag changes. The watermark and any transactions already
    generated stay as they are, so a resumed definition picks up from its
    watermark at the next generation pass.
    """

    def __init__(self, store: RecurringDefinitionStore):
        self._store = store

    def set_active(self, definition_id: int, active: bool) -> None:
        definition = self._store.get(definition_id)
        if definition is None:
            raise DefinitionNotFound(definition_id)
        if definition.active == active:
            return
        self._store.set_active(definition_id, active)
        logger.info(
            "Recurring definition %s %s (watermark %s)",
            definition_id, "resumed" if active else "paused", definition.watermark,
        )

    def toggle(self, definition_id: int) -> bool:
        """Flip the active flag and return the new state."""
        definition = self._store.get(definition_id)
        if definition is None:
            raise DefinitionNotFound(definition_id)
        new_state = not definition.active
        self.set_active(definition_id, new_state)
        return new_state
