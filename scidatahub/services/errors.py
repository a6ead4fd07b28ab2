class WorkflowError(Exception):
    """Base for errors a route reports back to the client as 4xx."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(WorkflowError):
    status_code = 404


class InvalidTransitionError(WorkflowError):
    pass


class PermissionDeniedError(WorkflowError):
    pass
