# getlogs_proxy/errors.py
from collections.abc import Mapping
from typing import Any
from dataclasses import dataclass

from getlogs_proxy.schemas import RPCErrorObject


@dataclass
class JSONRPCError(Exception):
    code: int
    message: str
    data: Any = None

    def __str__(self):
        return self.message

    def to_dict(self):
        base = {"code": self.code, "message": self.message}
        if self.data is not None:
            base["data"] = self.data
        return base


INTERNAL_ERROR_CODE = -32603
INTERNAL_ERROR_MESSAGE = "Internal error"

# Common JSON-RPC 2.0 error codes
PARSE_ERROR = lambda d=None: JSONRPCError(-32700, "Parse error", d)
INVALID_REQUEST = lambda d=None: JSONRPCError(-32600, "Invalid request", d)
INVALID_PARAMS = lambda d=None: JSONRPCError(-32602, "Invalid params", d)
INTERNAL_ERROR = lambda d=None: JSONRPCError(INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, d)


def _field(failure: Any, name: str) -> Any:
    if isinstance(failure, Mapping):
        return failure.get(name)
    return getattr(failure, name, None)


def _diagnostic(failure: Any) -> Any:
    if isinstance(failure, Mapping):
        return dict(failure)
    if isinstance(failure, BaseException):
        return {"exception": type(failure).__name__, "message": str(failure)}
    return str(failure)


def normalize_error(failure: Any) -> RPCErrorObject:
    """
    Turn any failure into a JSON-RPC error object. Never raises.

    JSONRPCError instances pass through as-is. Anything else is read
    duck-typed: an int ``code``, a str ``message`` and a ``data`` field
    are used when present. Failures that end up as a bare internal error
    carry the original failure as ``data`` for diagnostics.
    """
    if failure is None:
        return RPCErrorObject(code=INTERNAL_ERROR_CODE, message=INTERNAL_ERROR_MESSAGE)

    if isinstance(failure, JSONRPCError):
        return RPCErrorObject(code=failure.code, message=failure.message, data=failure.data)

    raw_code = _field(failure, "code")
    code = raw_code if isinstance(raw_code, int) and not isinstance(raw_code, bool) else INTERNAL_ERROR_CODE

    raw_message = _field(failure, "message")
    if isinstance(raw_message, str):
        message = raw_message
    elif isinstance(failure, BaseException) and str(failure):
        message = str(failure)
    else:
        message = INTERNAL_ERROR_MESSAGE

    data = _field(failure, "data")
    if code == INTERNAL_ERROR_CODE and data is None:
        data = _diagnostic(failure)

    return RPCErrorObject(code=code, message=message, data=data)
