# getlogs_proxy/transport/http.py
import json
import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from getlogs_proxy.errors import PARSE_ERROR, JSONRPCError, normalize_error
from getlogs_proxy.schemas import RPCFailure
from getlogs_proxy.server.processor import RPCProcessor


class HTTPTransport:
    def __init__(self, processor: RPCProcessor):
        self.processor = processor
        self.logger = logging.getLogger("getlogs_proxy.transport")

    async def handle(self, request: Request) -> Response:
        raw = await request.body()

        try:
            payload = json.loads(raw) if raw else {}
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
            self.logger.debug(f"Unparseable request body: {e}")
            return self._error_response(PARSE_ERROR(str(e)), None, 400)

        try:
            responses = await self.processor.handle_payload(payload)
        except JSONRPCError as e:
            return self._error_response(e, None, 200)

        if isinstance(responses, list):
            return JSONResponse([r.to_dict() for r in responses])
        return JSONResponse(responses.to_dict())

    def _error_response(self, error, id, status=400):
        return JSONResponse(
            status_code=status,
            content=RPCFailure(error=normalize_error(error), id=id).to_dict(),
        )
