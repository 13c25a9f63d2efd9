# =============================================================================
# bookcopy/core/errors.py — Domain errors
# =============================================================================
# Caller errors subclass ValueError so the HTTP layer maps them to 400.
# Completion client failures stay internal: the dispatch function logs them
# and raises GenerationFailed, whose message never carries upstream detail.
# =============================================================================

GENERATION_FAILED_MESSAGE = "Unable to generate content at the moment."


class InvalidGenerationType(ValueError):
    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Unsupported generation type: {value!r}")


class EmptyInput(ValueError):
    def __init__(self) -> None:
        super().__init__("extracted_text must not be empty")


class CompletionError(Exception):
    """Base class for failures raised by a completion client."""


class MissingCredential(CompletionError):
    def __init__(self, name: str = "OPENAI_API_KEY") -> None:
        self.name = name
        super().__init__(f"{name} is not set")


class UpstreamError(CompletionError):
    def __init__(self, status_code: int | None, body: str) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"Completion endpoint unreachable: {body[:500]}")
        else:
            super().__init__(f"Completion endpoint error {status_code}: {body[:500]}")


class MalformedResponse(CompletionError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Malformed completion response: {reason}")


class GenerationFailed(Exception):
    def __init__(self, message: str = GENERATION_FAILED_MESSAGE) -> None:
        super().__init__(message)


class FileParseError(ValueError):
    pass


class AuthError(Exception):
    pass


class DuplicateUser(AuthError):
    pass
