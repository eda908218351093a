class WorkflowError(Exception):
    def __init__(self, message: str, extra_info: dict[str, str | int | None] | None = None):
        self.message: str = message

        if extra_info:
            message += " (" + ", ".join(f"{key}: {value}" for key, value in extra_info.items() if value is not None) + ")"

        super().__init__(message)


class InvalidTransitionError(WorkflowError):
    def __init__(self, action: str, phase: str, reason: str):
        super().__init__(message=f"Cannot apply {action}: {reason}", extra_info={"phase": phase})


class WorkflowBusyError(WorkflowError):
    def __init__(self, action: str):
        super().__init__(message="Another request is still in progress", extra_info={"action": action})


class ApiError(WorkflowError):
    """An error reply from the HTTP API, carrying the `error` message the server sent back."""

    def __init__(self, status_code: int, message: str, path: str):
        self.status_code: int = status_code
        super().__init__(message=message, extra_info={"status_code": status_code, "path": path})
