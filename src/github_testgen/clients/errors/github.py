ExtraInfoType = dict[str, str | None]


class ClientError(Exception):
    """A request error from the GitHub TestGen client."""

    status_code: int = 500

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        self.message: str = message
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class InvalidRepositoryError(ClientError):
    """The repository identifier is not in the owner/name format."""

    status_code: int = 400

    def __init__(self, repository: str | None):
        super().__init__(
            message="Invalid or missing repo parameter. Format should be owner/repo.",
            extra_info={"repository": repository},
        )


class RequestError(ClientError):
    """A request error from the GitHub TestGen client."""

    def __init__(self, action: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(message="A request error occured.", extra_info={"action": action, "message": message, **extra_info})
        self.message = message or self.message


class ResourceNotFoundError(RequestError):
    """A not found error from the GitHub TestGen client."""

    status_code: int = 404

    def __init__(self, action: str, resource: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(
            action=action,
            message="The resource could not be found.",
            extra_info={"resource": resource, **extra_info},
        )


class ResourceTypeMismatchError(RequestError):
    """A type mismatch error from the GitHub TestGen client."""

    status_code: int = 400

    def __init__(self, action: str, resource: str, expected_type: str, actual_type: str):
        super().__init__(action, f"{resource}: Expected {expected_type}, got {actual_type}")


class PathIsDirectoryError(ResourceTypeMismatchError):
    """The path resolved to a directory listing where a file was expected."""

    def __init__(self, action: str, resource: str):
        super().__init__(action=action, resource=resource, expected_type="file", actual_type="directory")
        self.message = "Path is a directory"


class PullRequestCreationError(ClientError):
    """One of the steps needed to open a pull request failed."""

    def __init__(self, repository: str, branch: str, step: str, cause: BaseException):
        self.repository: str = repository
        self.branch: str = branch
        self.step: str = step
        super().__init__(
            message="Failed to create pull request",
            extra_info={"repository": repository, "branch": branch, "step": step, "cause": str(cause)},
        )
