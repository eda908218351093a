ExtraInfoType = dict[str, str | None]


class ServerError(Exception):
    """A request error from the GitHub TestGen server."""

    status_code: int = 500

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        self.message: str = message
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class NoFilesProvidedError(ServerError):
    status_code: int = 400

    def __init__(self):
        super().__init__(message="No files provided")


class MissingRequiredDataError(ServerError):
    status_code: int = 400

    def __init__(self, missing: list[str]):
        super().__init__(message="Missing required data", extra_info={"missing": ", ".join(missing)})


class TextGeneratorNotConfiguredError(ServerError):
    def __init__(self):
        super().__init__(message="No text generator is configured. Set GOOGLE_API_KEY or GEMINI_API_KEY to generate test cases.")


class GenerationFailedError(ServerError):
    """The model call failed; the upstream message is attached."""

    def __init__(self, action: str, cause: BaseException):
        super().__init__(message=f"Failed to {action}", extra_info={"message": str(cause)})
