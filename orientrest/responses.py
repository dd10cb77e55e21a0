"""Interpretation of raw HTTP responses into decoded bodies or typed errors."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .errors import (
    ArgumentError,
    DataError,
    NotFoundError,
    OrientRestError,
    ProtocolError,
    ServerError,
    UnauthorizedError,
)
from .models import HttpResponse

ERROR_MESSAGE_MAX_LEN = 200
DEFAULT_CONTENT_TYPE = "text/plain"


@dataclass(frozen=True, slots=True)
class DomainCheck:
    """Body pattern that reclassifies a response into a domain error."""

    pattern: re.Pattern[str]
    error: type[OrientRestError]
    message: str

    @classmethod
    def of(cls, pattern: str, error: type[OrientRestError], message: str) -> DomainCheck:
        return cls(re.compile(pattern), error, message)

    def matches(self, body: str) -> bool:
        return self.pattern.search(body) is not None


RECORD_NOT_FOUND = DomainCheck.of(r"ORecordNotFoundException", NotFoundError, "record not found")
# the server answers this way when reading a record deleted moments ago
RECORD_ID_NOT_FOUND = DomainCheck.of(r"Record with id .* was not found", NotFoundError, "record not found")
INVALID_CLASS = DomainCheck.of(r"Invalid class", NotFoundError, "class not found")
VALIDATION_FAILED = DomainCheck.of(r"OValidationException", DataError, "validation problem")
CONCURRENT_MODIFICATION = DomainCheck.of(
    r"OConcurrentModificationException", DataError, "concurrent modification"
)


class ResponseProcessor:
    """Classifies status, decodes the body and applies domain checks."""

    def __init__(self, *, max_error_len: int = ERROR_MESSAGE_MAX_LEN) -> None:
        self._max_error_len = max_error_len

    def process(self, response: HttpResponse | None, checks: Iterable[DomainCheck] = ()) -> Any:
        if response is None:
            raise ArgumentError("response is null")

        body = response.body or ""
        for check in checks:
            if check.matches(body):
                raise check.error(check.message)

        code = response.status_code
        if code == 401:
            raise UnauthorizedError(self.error_message(body))
        if code == 500:
            raise ServerError(self.error_message(body))
        if code // 100 != 2:
            raise ProtocolError(f"unexpected return code, code={code}, body={self.error_message(body)}")

        content_type = find_header(response.headers, "Content-Type") or DEFAULT_CONTENT_TYPE
        if content_type.startswith("text/plain"):
            return body
        if content_type.startswith("application/json"):
            try:
                return json.loads(body)
            except json.JSONDecodeError as exc:
                raise ProtocolError(f"malformed JSON body: {self.error_message(body)}") from exc
        raise ProtocolError(f"unsupported content type: {content_type}")

    def error_message(self, body: str) -> str:
        return compose_error_message(body, self._max_error_len)


def find_header(headers: Mapping[str, str], name: str) -> str | None:
    """Look a header up regardless of key casing or ``-``/``_`` spelling."""

    wanted = _header_key(name)
    for key, value in headers.items():
        if _header_key(str(key)) == wanted:
            return value
    return None


def compose_error_message(body: str, max_len: int = ERROR_MESSAGE_MAX_LEN) -> str:
    """Single-line diagnostic snippet of ``body``."""

    message = re.sub(r"\r?\n|\r", " ", body)
    if len(message) > max_len:
        message = f"{message[:max_len]} ..."
    return message


def _header_key(name: str) -> str:
    return name.lower().replace("_", "-")


__all__ = [
    "CONCURRENT_MODIFICATION",
    "DomainCheck",
    "INVALID_CLASS",
    "RECORD_ID_NOT_FOUND",
    "RECORD_NOT_FOUND",
    "ResponseProcessor",
    "VALIDATION_FAILED",
    "compose_error_message",
    "find_header",
]
