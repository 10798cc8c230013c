from typing import List, Optional


PARSE_FAILURE_MESSAGE = "Could not parse the model's response"


class DiagramflowError(Exception):
    """Base class for every error surfaced to the user for a generation attempt."""

    error_type = "error"

    @property
    def user_message(self) -> str:
        return str(self)


class InputValidationError(DiagramflowError):
    error_type = "input_validation"


class TransportError(DiagramflowError):
    error_type = "transport"

    def __init__(
        self,
        provider: str,
        status_code: Optional[int],
        reason: str = "",
        detail: str = "",
    ):
        self.provider = provider
        self.status_code = status_code
        self.reason = reason
        self.detail = detail

        if status_code is None:
            message = f"{provider} API error: {reason}"
        else:
            message = f"{provider} API error: {status_code} {reason}".rstrip()
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message)


class MalformedGraphError(DiagramflowError):
    """
    The model's reply could not be turned into a graph.

    The raw reply is kept on the error so callers can still display it.
    """

    error_type = "malformed_graph"

    def __init__(
        self,
        message: str,
        raw_text: str = "",
        missing_keys: Optional[List[str]] = None,
    ):
        self.raw_text = raw_text
        self.missing_keys = missing_keys or []
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return PARSE_FAILURE_MESSAGE
