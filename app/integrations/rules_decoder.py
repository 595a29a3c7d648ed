from typing import AsyncIterable

import httpx
from pydantic import ValidationError

from app.core.errors import DecodeError
from app.core.schemas import RulesResponse


async def decode_rules_response(chunks: AsyncIterable[bytes], endpoint: str) -> RulesResponse:
    """Decode a rules API body into an immutable RulesResponse.

    Malformed JSON, type mismatches and a stream that breaks off mid-body
    all surface as DecodeError naming the endpoint.
    """
    buf = bytearray()
    try:
        async for chunk in chunks:
            buf.extend(chunk)
    except httpx.HTTPError as e:
        raise DecodeError(endpoint, e) from e

    try:
        return RulesResponse.model_validate_json(bytes(buf))
    except ValidationError as e:
        raise DecodeError(endpoint, e) from e
