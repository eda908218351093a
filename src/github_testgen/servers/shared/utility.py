import base64
from collections.abc import Sequence

from githubkit.response import Response
from pydantic import BaseModel

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens for a given text."""
    return len(text) // 4


def extract_response[T: GITHUBKIT_RESPONSE_TYPE](response: Response[T], /) -> T:
    """Extract the response from a response."""

    return response.parsed_data


def decode_content(content: str) -> str:
    """Decode base64 file content. Bytes that are not UTF-8 are replaced, as httpx does for downloads."""
    return base64.b64decode(content).decode("utf-8", errors="replace")


def encode_content(content: str) -> str:
    return base64.b64encode(content.encode("utf-8")).decode("ascii")
