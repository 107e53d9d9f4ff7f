"""Error kinds raised by sinks, builders, and deliveries.

Purpose
-------
Give every failure a stable numeric :attr:`SinkError.code` and a small bag of
structured attributes so error handlers can report them without parsing
messages.

Contents
--------
* :class:`ErrorCode` - numeric codes.
* :class:`SinkError` and its subclasses, one per failure kind.
* :class:`FanoutError` - aggregate raised by the fan-out composer.

System Role
-----------
Shared vocabulary between adapters (which raise), the error-handler hook (which
may transform or suppress), and the registry (which wraps build failures).
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    INVALID_PARAMETER = 1
    HANDLE_RECORD = 2
    BUILD = 3
    MARSHAL = 9
    UNSUPPORTED_SINK_TYPE = 10
    OPTIONS_VALIDATION = 11
    SINK_TYPE_EXISTS = 12
    DATA_COMPRESSION = 13
    HTTP_TRANSPORT = 14
    HTTP_REQUEST = 15
    HTTP_RESPONSE = 16
    FORMAT = 17
    BUFFER_WRITE = 18
    FANOUT = 19


class SinkError(Exception):
    """Base class for every error raised by this package."""

    code: ErrorCode = ErrorCode.HANDLE_RECORD

    def __init__(self, message: str, **attrs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.attrs: dict[str, Any] = attrs

    def to_dict(self) -> dict[str, Any]:
        """Return ``message``, ``code``, and attributes for structured reports."""

        data: dict[str, Any] = {"message": self.message, "code": int(self.code)}
        for key, value in self.attrs.items():
            data[key] = value if isinstance(value, (str, int, float, bool)) or value is None else str(value)
        if self.__cause__ is not None:
            data["error"] = str(self.__cause__)
        return data


class InvalidParameterError(SinkError):
    code = ErrorCode.INVALID_PARAMETER


class HandleRecordError(SinkError):
    code = ErrorCode.HANDLE_RECORD


class FormatError(SinkError):
    code = ErrorCode.FORMAT


class MarshalError(SinkError):
    code = ErrorCode.MARSHAL


class BufferWriteError(SinkError):
    code = ErrorCode.BUFFER_WRITE


class CompressionError(SinkError):
    code = ErrorCode.DATA_COMPRESSION


class RequestError(SinkError):
    code = ErrorCode.HTTP_REQUEST


class TransportError(SinkError):
    code = ErrorCode.HTTP_TRANSPORT


class ResponseError(SinkError):
    """The collector answered with a status of 400 or above."""

    code = ErrorCode.HTTP_RESPONSE

    def __init__(self, message: str, *, status_code: int, status: str, body: str, **attrs: Any) -> None:
        super().__init__(message, status_code=status_code, status=status, body=body, **attrs)
        self.status_code = status_code
        self.status = status
        self.body = body


class OptionsValidationError(SinkError):
    code = ErrorCode.OPTIONS_VALIDATION


class BuildError(SinkError):
    code = ErrorCode.BUILD


class UnsupportedSinkTypeError(SinkError):
    code = ErrorCode.UNSUPPORTED_SINK_TYPE


class SinkTypeExistsError(SinkError):
    code = ErrorCode.SINK_TYPE_EXISTS


class FanoutError(SinkError):
    """Aggregate of the errors raised by individual children."""

    code = ErrorCode.FANOUT

    def __init__(self, message: str, errors: Iterable[BaseException], **attrs: Any) -> None:
        self.errors: tuple[BaseException, ...] = tuple(errors)
        super().__init__(f"{message}: " + "; ".join(str(error) for error in self.errors), **attrs)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = [
            error.to_dict() if isinstance(error, SinkError) else {"message": str(error)} for error in self.errors
        ]
        return data


__all__ = [
    "BufferWriteError",
    "BuildError",
    "CompressionError",
    "ErrorCode",
    "FanoutError",
    "FormatError",
    "HandleRecordError",
    "InvalidParameterError",
    "MarshalError",
    "OptionsValidationError",
    "RequestError",
    "ResponseError",
    "SinkError",
    "SinkTypeExistsError",
    "TransportError",
    "UnsupportedSinkTypeError",
]
