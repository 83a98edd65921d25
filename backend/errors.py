"""Error taxonomy for actions on entities and meeting-notes analysis."""


class NotFoundError(Exception):
    """The targeted row does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class PersistenceError(Exception):
    """A database write failed. `action` reads like "create collection"."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Failed to {action}")


class AnalysisError(Exception):
    """The model provider failed or returned output that does not match the schema."""
