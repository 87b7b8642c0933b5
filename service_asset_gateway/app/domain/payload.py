"""
PUT body decoding.

A PUT body is either the raw object bytes or a multipart form carrying the
object in a named file field. The two encodings are modelled as a tagged
union so handlers dispatch on the variant rather than on header strings.
"""

from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Request
from starlette.datastructures import UploadFile

from shared.errors import ValidationError

from .models import Blob

MULTIPART_FORM_DATA = "multipart/form-data"


@dataclass(frozen=True)
class RawPayload:
    """Entire request body is the object."""
    data: bytes
    content_type: Optional[str] = None

    def to_blob(self) -> Blob:
        return Blob(data=self.data, content_type=self.content_type)


@dataclass(frozen=True)
class MultipartPayload:
    """Object extracted from a multipart file field."""
    data: bytes
    content_type: Optional[str] = None
    filename: Optional[str] = None

    def to_blob(self) -> Blob:
        return Blob(data=self.data, content_type=self.content_type)


Payload = Union[RawPayload, MultipartPayload]


def is_multipart(content_type: Optional[str]) -> bool:
    """True when the media type of ``content_type`` is multipart/form-data."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == MULTIPART_FORM_DATA


async def read_payload(request: Request, field_name: str = "file") -> Payload:
    """Decode the request body into a payload variant."""
    content_type = request.headers.get("content-type")

    if not is_multipart(content_type):
        return RawPayload(data=await request.body(), content_type=content_type)

    form = await request.form()
    try:
        upload = form.get(field_name)
        if not isinstance(upload, UploadFile):
            raise ValidationError(
                "Multipart body is missing the file field",
                {"field": field_name},
            )
        data = await upload.read()
        return MultipartPayload(
            data=data,
            content_type=upload.content_type,
            filename=upload.filename,
        )
    finally:
        await form.close()
