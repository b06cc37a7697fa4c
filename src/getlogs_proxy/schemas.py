# getlogs_proxy/schemas.py
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictStr

# ids are echoed back verbatim, whatever JSON value the caller used
RPCId = Any


class RPCRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"]
    method: StrictStr
    params: Optional[Any] = None
    id: RPCId = None


class RPCErrorObject(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> dict:
        base = {"code": self.code, "message": self.message}
        if self.data is not None:
            base["data"] = self.data
        return base


class RPCSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    jsonrpc: str = Field(default="2.0")
    id: RPCId = None
    result: Any = None

    def to_dict(self) -> dict:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "result": self.result}


class RPCFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    jsonrpc: str = Field(default="2.0")
    id: RPCId = None
    error: RPCErrorObject

    def to_dict(self) -> dict:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "error": self.error.to_dict()}


RPCResponse = Union[RPCSuccess, RPCFailure]
