import logging
import zlib

from enum import Enum
from typing import Any, Dict, Tuple

from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from graphql_http_harness.helpers import (
    BadEncodingError,
    BodyTooLargeError,
    UnsupportedEncodingError,
    load_json_body,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_SIZE = 100 * 1024

UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


class MediaType(Enum):
    JSON = "application/json"
    FORM = "application/x-www-form-urlencoded"
    GRAPHQL = "application/graphql"
    MULTIPART = "multipart/form-data"
    OTHER = None

    @classmethod
    def from_mime_type(cls, mime_type: str) -> "MediaType":
        for media_type in cls:
            if media_type.value == mime_type:
                return media_type
        return cls.OTHER


def parse_content_type(header: str) -> Tuple[str, Dict[str, str]]:
    """Split a Content-Type header into its lowercased MIME type and parameters."""
    mime_type, _, rest = header.partition(";")
    params = {}
    for param in rest.split(";"):
        key, sep, value = param.partition("=")
        if sep:
            params[key.strip().lower()] = value.strip().strip('"')
    return mime_type.strip().lower(), params


def inflate(raw: bytes, wbits: int, max_size: int) -> bytes:
    decompressor = zlib.decompressobj(wbits)
    try:
        body = decompressor.decompress(raw, max_size + 1)
    except zlib.error as e:
        raise BadEncodingError(str(e))

    # Output is capped one byte past the limit so oversized bodies are never fully inflated.
    if len(body) > max_size or decompressor.unconsumed_tail:
        raise BodyTooLargeError()
    if not decompressor.eof:
        raise BadEncodingError("unexpected end of compressed data")
    return body


def decompress(raw: bytes, encoding: str, max_size: int = DEFAULT_MAX_BODY_SIZE) -> bytes:
    if encoding == "identity":
        return raw

    if encoding == "gzip":
        return inflate(raw, 16 + zlib.MAX_WBITS, max_size)
    if encoding == "deflate":
        try:
            return inflate(raw, zlib.MAX_WBITS, max_size)
        except BadEncodingError:
            # Some clients send raw deflate streams without the zlib header.
            return inflate(raw, -zlib.MAX_WBITS, max_size)

    raise UnsupportedEncodingError(f'Unsupported content-encoding "{encoding}".')


def decode_text(raw: bytes, charset: str) -> str:
    if not charset.startswith("utf-"):
        raise UnsupportedEncodingError(f'Unsupported charset "{charset.upper()}".')

    if charset == "utf-16" and not raw.startswith(UTF16_BOMS):
        charset = "utf-16-le"

    try:
        return raw.decode(charset)
    except LookupError:
        raise UnsupportedEncodingError(f'Unsupported charset "{charset.upper()}".')
    except UnicodeDecodeError as e:
        raise BadEncodingError(e.reason)


async def read_body(request: Request, max_body_size: int = DEFAULT_MAX_BODY_SIZE) -> bytes:
    """Read and decompress the request body according to Content-Encoding."""
    encoding = request.headers.get("Content-Encoding", "identity").strip().lower()
    if encoding not in ("identity", "gzip", "deflate"):
        raise UnsupportedEncodingError(f'Unsupported content-encoding "{encoding}".')

    raw = await request.body()
    if len(raw) > max_body_size:
        raise BodyTooLargeError()

    return decompress(raw, encoding, max_size=max_body_size)


async def parse_form(request: Request, body: bytes):
    """Parse an already-read form body with Starlette's form parsers."""

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    try:
        form = await Request(request.scope, receive).form()
    except MultiPartException as e:
        raise BadEncodingError(e.message)
    except HTTPException as e:
        raise BadEncodingError(e.detail)

    data, files = {}, {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            files[key] = value
        else:
            data[key] = value
    return data, files


async def parse_body(
    request: Request, max_body_size: int = DEFAULT_MAX_BODY_SIZE
) -> Tuple[Dict[str, Any], Dict[str, UploadFile]]:
    """Decode a request body into GraphQL parameters and uploaded files.

    Bodies of an unrecognised or missing content type contribute no parameters,
    leaving the query to come from the URL.
    """
    content_type = request.headers.get("Content-Type")
    if content_type is None:
        return {}, {}

    mime_type, params = parse_content_type(content_type)
    media_type = MediaType.from_mime_type(mime_type)
    if media_type is MediaType.OTHER:
        logger.debug("Ignoring body with content type %r", mime_type)
        return {}, {}

    body = await read_body(request, max_body_size=max_body_size)

    if media_type is MediaType.MULTIPART:
        return await parse_form(request, body)

    text = decode_text(body, params.get("charset", "utf-8").lower())

    if media_type is MediaType.GRAPHQL:
        return {"query": text}, {}

    if media_type is MediaType.JSON:
        return load_json_body(text), {}

    return await parse_form(request, text.encode())
