# getlogs_proxy/server/processor.py
import asyncio
import logging
from typing import Any, List, Union

from pydantic import ValidationError

from getlogs_proxy.errors import INVALID_REQUEST, normalize_error
from getlogs_proxy.schemas import RPCErrorObject, RPCFailure, RPCRequest, RPCResponse, RPCSuccess
from getlogs_proxy.server.dispatcher import RPCDispatcher


class RPCProcessor:
    """
    Turns decoded JSON-RPC payloads into response envelopes.

    A batch fans out concurrently and comes back in input order. Each
    call resolves to exactly one response, success or error, so one
    failing element never affects its siblings.
    """

    def __init__(self, dispatcher: RPCDispatcher):
        self.dispatcher = dispatcher
        self.logger = logging.getLogger("getlogs_proxy.processor")

    async def handle_payload(self, payload: Any) -> Union[RPCResponse, List[RPCResponse]]:
        if isinstance(payload, list):
            if not payload:
                raise INVALID_REQUEST("empty batch")
            return list(await asyncio.gather(*(self.handle_single(item) for item in payload)))

        return await self.handle_single(payload)

    async def handle_single(self, item: Any) -> RPCResponse:
        request_id = item.get("id") if isinstance(item, dict) else None

        try:
            req = RPCRequest.model_validate(item)
        except ValidationError as e:
            self.logger.debug(f"Rejected call (id={request_id!r}): {e.error_count()} validation error(s)")
            return self._make_response(error=INVALID_REQUEST(), id=request_id)

        try:
            result = await self.dispatcher.dispatch(req.method, req.params)
        except Exception as e:
            error = normalize_error(e)
            self.logger.warning(f"{req.method} failed (id={req.id!r}): [{error.code}] {error.message}")
            return self._make_response(error=error, id=req.id)

        return self._make_response(result=result, id=req.id)

    def _make_response(self, result=None, error=None, id=None) -> RPCResponse:
        if error is not None:
            if not isinstance(error, RPCErrorObject):
                error = normalize_error(error)
            return RPCFailure(error=error, id=id)
        return RPCSuccess(result=result, id=id)
