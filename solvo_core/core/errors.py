# solvo_core/core/errors.py

class StateError(Exception):
    """Base class for actions that cannot be applied to the application state."""


class NotFoundError(StateError):
    def __init__(self, kind: str, ident: str):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found: {ident}")


class StateValidationError(StateError):
    pass
