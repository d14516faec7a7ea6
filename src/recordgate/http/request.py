# recordgate/http/request.py
"""
ServerRequest - immutable-style view of an incoming HTTP request.

Wraps a Starlette request with the parts the entity pipeline and the
action dispatcher need: query params, parsed body, uploaded files, route
params and request attributes. `with_attribute` returns a copy, so each
middleware step hands a new request down the chain.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.requests import Request

logger = logging.getLogger(__name__)

LIST_SUFFIX = "[]"


def parse_query_items(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Fold multi-valued items into a dict.

    ``name[]=a&name[]=b`` becomes ``{"name": ["a", "b"]}``; a repeated plain
    key keeps its last value.
    """
    out: dict[str, Any] = {}
    for key, value in items:
        if key.endswith(LIST_SUFFIX):
            name = key[: -len(LIST_SUFFIX)]
            current = out.get(name)
            if not isinstance(current, list):
                current = []
                out[name] = current
            current.append(value)
        else:
            out[key] = value
    return out


@dataclass(frozen=True)
class ServerRequest:
    method: str
    query_params: Mapping[str, Any] = field(default_factory=dict)
    parsed_body: Any = None
    uploaded_files: Mapping[str, UploadFile] = field(default_factory=dict)
    route_params: Mapping[str, Any] = field(default_factory=dict)
    attributes: Mapping[str, Any] = field(default_factory=dict)
    session: AsyncSession | None = None
    raw: Request | None = None

    @classmethod
    async def from_starlette(
        cls,
        request: Request,
        *,
        session: AsyncSession | None = None,
    ) -> "ServerRequest":
        body, files = await _parse_body(request)
        return cls(
            method=request.method.upper(),
            query_params=parse_query_items(request.query_params.multi_items()),
            parsed_body=body,
            uploaded_files=files,
            route_params=dict(request.path_params),
            attributes={},
            session=session,
            raw=request,
        )

    # -- attributes -----------------------------------------------------------

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> "ServerRequest":
        return replace(self, attributes={**self.attributes, name: value})

    # -- params ---------------------------------------------------------------

    @property
    def params(self) -> dict[str, Any]:
        """Query params merged with a mapping body; body values win."""
        merged = dict(self.query_params)
        if isinstance(self.parsed_body, Mapping):
            merged.update(self.parsed_body)
        return merged

    def first_uploaded_file(self) -> UploadFile | None:
        for upload in self.uploaded_files.values():
            return upload
        return None


async def _parse_body(request: Request) -> tuple[Any, dict[str, UploadFile]]:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.form()
        files: dict[str, UploadFile] = {}
        fields: list[tuple[str, Any]] = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                files[key] = value
            else:
                fields.append((key, value))
        return parse_query_items(fields), files

    raw = await request.body()
    if not raw:
        return None, {}

    if content_type == "application/json" or content_type.endswith("+json"):
        try:
            return json.loads(raw), {}
        except json.JSONDecodeError as exc:
            logger.info("Malformed JSON body on %s %s", request.method, request.url.path)
            raise HTTPException(status_code=400, detail="Malformed JSON body") from exc

    return None, {}
