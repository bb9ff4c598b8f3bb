"""Exception hierarchy for the genai client.

Pre-stream failures (non-2xx status) raise :class:`APIError` from the
initiating call.  Stream-phase failures are never raised: they are handed
to the delivery callback as the ``error`` of the terminal invocation.
"""

from __future__ import annotations

import json
import logging
from typing import Any

_logger = logging.getLogger(__name__)


class GenAIError(Exception):
    """Base class for all errors raised by this package."""


class APIError(GenAIError):
    """The API answered with a non-success status or an ``error`` body."""

    def __init__(
        self,
        message: str,
        *,
        type: str = "",
        param: Any = None,
        code: str | int | None = None,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        self.message = message
        self.type = type
        self.param = param
        self.code = code
        self.status_code = status_code
        self.body = body
        super().__init__(self._render())

    def _render(self) -> str:
        fields: dict[str, Any] = {"type": self.type, "message": self.message}
        if self.code is not None:
            fields["code"] = self.code
        if self.param is not None:
            fields["param"] = self.param
        try:
            return json.dumps(fields)
        except (TypeError, ValueError):
            return repr(fields)

    @classmethod
    def from_error_object(
        cls,
        error: dict[str, Any],
        status_code: int | None = None,
        body: str = "",
    ) -> APIError:
        """Build from an ``{"message", "type", "param", "code"}`` object."""
        return cls(
            str(error.get("message", "")),
            type=str(error.get("type", "") or ""),
            param=error.get("param"),
            code=error.get("code"),
            status_code=status_code,
            body=body,
        )

    @classmethod
    def from_response_body(cls, body: str, status_code: int | None = None) -> APIError:
        """Decode an error body.

        Two wrappers are tolerated: ``{"error": {...}}`` and the
        array form ``[{"error": {"message", "code"}}]`` sent by
        Gemini-compatible endpoints.
        """
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            return cls(
                f"failed to decode error body: {e}",
                status_code=status_code,
                body=body,
            )

        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return cls.from_error_object(data["error"], status_code, body)

        if (
            isinstance(data, list)
            and data
            and isinstance(data[0], dict)
            and isinstance(data[0].get("error"), dict)
        ):
            err = data[0]["error"]
            return cls(
                str(err.get("message", "")),
                code=err.get("code"),
                status_code=status_code,
                body=body,
            )

        _logger.debug("Unrecognised error body shape: %.200s", body)
        return cls(
            f"failed to decode error body: unexpected shape (http status {status_code})",
            status_code=status_code,
            body=body,
        )


class StreamError(GenAIError):
    """Base class for errors delivered through a terminal stream callback."""


class StreamTransportError(StreamError):
    """Reading the response body failed mid-stream."""


class StreamDecodeError(StreamError):
    """A ``data:`` line did not carry a decodable JSON object."""

    def __init__(self, message: str, data: str = "") -> None:
        self.data = data
        super().__init__(message)


class StreamCancelledError(StreamError):
    """The caller signalled cancellation; observed between two lines."""

    def __init__(self, message: str = "stream cancelled") -> None:
        super().__init__(message)
