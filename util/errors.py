# util/errors.py
from fastapi import HTTPException, status
from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)

    @classmethod
    def of(cls, error: ErrorMessage) -> "AppError":
        return cls(error.value.message, error.value.http_status)


class GatewayError(Exception):
    """Base for every failure surfaced by the generation gateway."""

    user_message = "The AI service could not complete the request."

    def __init__(self, detail: str = "", user_message: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        if user_message:
            self.user_message = user_message


class TransportFailure(GatewayError):
    user_message = "The AI service is unreachable or busy. Please try again."

    def __init__(self, detail: str = "", status_code: int | None = None) -> None:
        super().__init__(detail)
        self.status_code = status_code


class QuotaOrAuthFailure(GatewayError):
    user_message = "The AI service rejected the request (quota or API key)."

    def __init__(self, detail: str = "", status_code: int | None = None) -> None:
        super().__init__(detail)
        self.status_code = status_code


class MalformedResponse(GatewayError):
    user_message = (
        "Failed to parse AI response. The content might be too complex or formatted incorrectly."
    )


class EmptyResult(GatewayError):
    # Soft failure: informational, never an error banner.
    user_message = "No new content could be generated."


# Domain conditions raised by the core and mapped to AppError by the service layer.
class StudyKitError(Exception):
    pass


class EmptyUploadError(StudyKitError):
    pass


class PreconditionError(StudyKitError):
    pass


class BusyError(StudyKitError):
    pass


class InvalidAnswerError(StudyKitError):
    pass


class ExamNotCompleteError(StudyKitError):
    pass
