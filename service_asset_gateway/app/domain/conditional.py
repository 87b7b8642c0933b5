"""
Conditional-request handling via content tags (ETag / If-None-Match).
"""

import hashlib
import mimetypes
from typing import Dict, Optional

from fastapi import Request, Response

from .models import ReadResult

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def content_tag(data: bytes) -> str:
    """Strong entity tag for ``data``."""
    return f'"{hashlib.sha256(data).hexdigest()}"'


def _opaque(tag: str) -> str:
    tag = tag.strip()
    return tag[2:] if tag.startswith("W/") else tag


def if_none_match_satisfied(header: Optional[str], tag: str) -> bool:
    """True when ``header`` names ``tag`` (weak comparison) or is ``*``."""
    if not header:
        return False
    if header.strip() == "*":
        return True
    wanted = _opaque(tag)
    return any(_opaque(candidate) == wanted for candidate in header.split(",") if candidate.strip())


class ConditionalRequestMiddleware:
    """Shape successful read results into 200 or 304 responses.

    Works only on bytes the read path already fetched; it never consults the
    stores and is never used for mutating requests.
    """

    def __init__(self, cache_control: Optional[str] = None, cdn_cache_control: Optional[str] = None):
        self.cache_headers: Dict[str, str] = {}
        if cache_control:
            self.cache_headers["Cache-Control"] = cache_control
        if cdn_cache_control:
            self.cache_headers["CDN-Cache-Control"] = cdn_cache_control

    def render(self, request: Request, key: str, result: ReadResult) -> Response:
        tag = content_tag(result.data)
        headers = {
            "ETag": tag,
            "X-Cache": "HIT" if result.from_cache else "MISS",
            **self.cache_headers,
        }

        if if_none_match_satisfied(request.headers.get("if-none-match"), tag):
            return Response(status_code=304, headers=headers)

        media_type = result.content_type or mimetypes.guess_type(key)[0] or DEFAULT_MEDIA_TYPE

        if request.method == "HEAD":
            headers["Content-Length"] = str(len(result.data))
            return Response(status_code=200, headers=headers, media_type=media_type)

        return Response(content=result.data, status_code=200, headers=headers, media_type=media_type)
