# recordgate/services/response.py
"""
Default response builder and formatter used by the action dispatcher.

The builder turns an Action's return value into JSON-ready data; the
formatter wraps that data into the final HTTP response.
"""
from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.responses import JSONResponse, Response

from recordgate.orm.record import ActiveRecordMixin, RecordCollection

# Headers owned by the formatter, never copied from the working response
_SKIP_HEADERS = {"content-length", "content-type"}


class ResponseBuilder:
    def __call__(self, result: Any) -> Any:
        return jsonable_encoder(self.to_data(result))

    def to_data(self, result: Any) -> Any:
        if isinstance(result, ActiveRecordMixin):
            return result.to_dict()
        if isinstance(result, RecordCollection):
            return result.to_list()
        if isinstance(result, BaseModel):
            return result.model_dump(mode="json")
        if is_dataclass(result) and not isinstance(result, type):
            return asdict(result)
        if isinstance(result, (list, tuple)):
            return [self.to_data(item) for item in result]
        if isinstance(result, dict):
            return {k: self.to_data(v) for k, v in result.items()}
        return result


class JsonResponseFormatter:
    """Render data as JSON, keeping the status and headers set on `response`."""

    def __call__(self, response: Response, data: Any) -> Response:
        status_code = response.status_code
        if data is None and status_code == 200:
            status_code = 204

        headers = {
            k: v for k, v in response.headers.items() if k.lower() not in _SKIP_HEADERS
        }
        if status_code == 204:
            return Response(status_code=204, headers=headers)
        return JSONResponse(data, status_code=status_code, headers=headers)
