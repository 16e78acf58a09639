"""
trok/rpc/dispatcher.py

Purpose: Typed procedure registry and dispatcher

- Procedures are registered by name as queries or mutations
- Raw input is validated against the procedure's input type
- Results and errors are wrapped in the envelope the dashboard client expects
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Literal, Optional, Tuple

from fastapi.encoders import jsonable_encoder
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from trok.core.config import settings
from trok.core.exceptions import TrokError
from trok.core.logging import get_logger, LogContext
from trok.services.plaid_service import PlaidService

logger = get_logger(__name__)

ProcedureKind = Literal["query", "mutation"]

# HTTP status -> error code used in the error envelope
ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_SUPPORTED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_CONTENT",
    500: "INTERNAL_SERVER_ERROR",
    502: "BAD_GATEWAY",
}


@dataclass
class RpcContext:
    """Per-request dependencies handed to every procedure."""

    plaid: PlaidService
    request_id: Optional[str] = None


@dataclass
class Procedure:
    name: str
    kind: ProcedureKind
    handler: Callable[[RpcContext, Any], Awaitable[Any]]
    input_type: Any = None
    _adapter: Optional[TypeAdapter] = field(default=None, init=False, repr=False)

    def parse_input(self, raw: Any) -> Any:
        if self.input_type is None:
            return raw
        if self._adapter is None:
            self._adapter = TypeAdapter(self.input_type)
        return self._adapter.validate_python(raw)


PROCEDURES: Dict[str, Procedure] = {}


def procedure(kind: ProcedureKind, *names: str, input_type: Any = None):
    """
    Registers an async handler under one or more procedure names.

    Usage:
        @procedure("query", "getCustomers", input_type=UserScoped)
        async def get_customers(ctx, data): ...
    """
    def decorator(handler):
        for name in names:
            if name in PROCEDURES:
                raise ValueError(f"Procedure {name} registered twice")
            PROCEDURES[name] = Procedure(name=name, kind=kind, handler=handler, input_type=input_type)
        return handler
    return decorator


def error_envelope(message: str, status_code: int, path: str, details: Any = None) -> Dict[str, Any]:
    return {
        "error": {
            "message": message,
            "code": ERROR_CODES.get(status_code, "INTERNAL_SERVER_ERROR"),
            "data": {
                "httpStatus": status_code,
                "path": path,
                "details": details,
            }
        }
    }


async def dispatch(
    name: str,
    method: str,
    raw_input: Any,
    ctx: RpcContext
) -> Tuple[int, Dict[str, Any]]:
    """
    Runs a procedure and returns (http_status, envelope).

    Queries answer GET, mutations answer POST.
    """
    proc = PROCEDURES.get(name)
    if proc is None:
        return 404, error_envelope(f'No "{method.lower()}"-procedure on path "{name}"', 404, name)

    expected_method = "GET" if proc.kind == "query" else "POST"
    if method.upper() != expected_method:
        return 405, error_envelope(
            f'Unsupported {method.upper()}-request to {proc.kind} procedure at path "{name}"',
            405,
            name
        )

    with LogContext(procedure=name, request_id=ctx.request_id):
        try:
            data = proc.parse_input(raw_input)
        except PydanticValidationError as e:
            logger.info(f"Invalid input for {name}: {e.error_count()} error(s)")
            return 400, error_envelope(
                "Input validation failed",
                400,
                name,
                jsonable_encoder(e.errors(include_url=False, include_context=False))
            )

        try:
            result = await proc.handler(ctx, data)
        except TrokError as e:
            log = logger.error if e.status_code >= 500 else logger.info
            log(f"{name} failed: {e.code} {e.message}")
            return e.status_code, error_envelope(e.message, e.status_code, name, jsonable_encoder(e.details))
        except Exception as e:
            logger.error(f"{name} crashed: {e}", exc_info=True)
            message = "An internal error occurred. Please try again later." if settings.is_production else str(e)
            return 500, error_envelope(message, 500, name)

        logger.debug(f"{proc.kind} {name} ok")
        return 200, {"result": {"data": jsonable_encoder(result)}}
