class InvalidRule(ValueError):
    """A recurrence rule with an impossible interval, anchor or date range."""


class DefinitionNotFound(LookupError):
    def __init__(self, definition_id):
        super().__init__(f"Recurring definition {definition_id} not found.")
        self.definition_id = definition_id


class AppendFailure(Exception):
    """The ledger refused or failed to store a generated transaction."""


class WatermarkRegression(ValueError):
    def __init__(self, definition_id, current, proposed):
        super().__init__(
            f"Watermark for definition {definition_id} cannot move back "
            f"from {current} to {proposed}."
        )
        self.definition_id = definition_id
