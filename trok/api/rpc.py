"""
trok/api/rpc.py

Purpose: HTTP surface for the dashboard procedures

GET  /server/trpc/{procedure}?input=<json>   queries
POST /server/trpc/{procedure}  (json body)   mutations
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from trok.rpc.dispatcher import RpcContext, dispatch, error_envelope
from trok.services.plaid_service import PlaidService, get_plaid_service

# Registers the procedures
from trok.rpc.handlers import auth, invoices, payments  # noqa: F401

router = APIRouter()


class InvalidInput(Exception):
    pass


def _decode(raw: Any) -> Any:
    if raw is None or raw == "" or raw == b"":
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise InvalidInput()


@router.api_route("/{procedure_name}", methods=["GET", "POST"])
async def call_procedure(
    procedure_name: str,
    request: Request,
    plaid: PlaidService = Depends(get_plaid_service)
):
    if request.method == "GET":
        raw = request.query_params.get("input")
    else:
        raw = await request.body()

    try:
        raw_input = _decode(raw)
    except InvalidInput:
        return JSONResponse(
            status_code=400,
            content=error_envelope("Input is not valid JSON", 400, procedure_name)
        )

    ctx = RpcContext(plaid=plaid, request_id=getattr(request.state, "request_id", None))
    status_code, body = await dispatch(procedure_name, request.method, raw_input, ctx)
    return JSONResponse(status_code=status_code, content=body)
