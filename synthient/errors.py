"""Exception types raised by the Synthient client."""

from __future__ import annotations

from http import HTTPStatus


class SynthientError(Exception):
    """Base class for every error raised by this package."""

    close_error: BaseException | None = None


class NoTokenError(SynthientError):
    """The client has no API token to authenticate with."""

    def __init__(self, message: str = "no token provided for client") -> None:
        super().__init__(message)


class RequestFailedError(SynthientError):
    """The transport could not perform the request (DNS, connect, TLS, ...)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"performing request to {url}: {reason}")
        self.url = url


class RequestCancelledError(SynthientError):
    """The call was cancelled or its deadline expired."""


class APIStatusError(SynthientError):
    """The API answered with an error status code."""

    default_message = "request failed"

    def __init__(self, url: str, status_code: int, message: str | None = None) -> None:
        self.url = url
        self.status_code = status_code
        self.message = message
        super().__init__(self._format())

    def _format(self) -> str:
        text = f"{self.default_message} (status {self.status_code}, url {self.url})"
        if self.message:
            text = f"{text}: {self.message}"
        return text


class BadRequestError(APIStatusError):
    default_message = "invalid input parameters"


class UnauthorizedError(APIStatusError):
    default_message = "no api key was provided or the key is invalid"


class PaymentRequiredError(APIStatusError):
    default_message = "credits have run out"


class InternalServerError(APIStatusError):
    default_message = "unexpected error occurred"


class UnexpectedStatusCodeError(APIStatusError):
    def __init__(
        self,
        url: str,
        status_code: int,
        expected_status_code: int,
        message: str | None = None,
    ) -> None:
        self.expected_status_code = expected_status_code
        super().__init__(url, status_code, message)

    def _format(self) -> str:
        text = (
            f"status of {_describe(self.status_code)} "
            f"({_describe(self.expected_status_code)} expected) making request to {self.url}"
        )
        if self.message:
            text = f"{text}: {self.message}"
        return text


class DecodeError(SynthientError):
    """The response body could not be decoded into the expected shape."""


class FeedFileExistsError(SynthientError, FileExistsError):
    """The download destination already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(f"creating file at {path}: file already exists")
        self.path = path


class SynthientIOError(SynthientError):
    """Reading, copying, flushing or closing a stream or file failed."""


STATUS_ERRORS: dict[int, type[APIStatusError]] = {
    HTTPStatus.BAD_REQUEST: BadRequestError,
    HTTPStatus.UNAUTHORIZED: UnauthorizedError,
    HTTPStatus.PAYMENT_REQUIRED: PaymentRequiredError,
    HTTPStatus.INTERNAL_SERVER_ERROR: InternalServerError,
}


def attach_close_error(error: SynthientError, close_error: BaseException) -> None:
    error.close_error = close_error
    error.add_note(f"additionally, releasing a resource failed: {close_error!r}")


def _describe(status_code: int) -> str:
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        return str(status_code)
    return f'{status_code} "{phrase}"'
