from typing import Annotated

from pydantic import AfterValidator, HttpUrl, TypeAdapter, ValidationError
from tik_agent.schemas.base import RpcModel

_http_url = TypeAdapter(HttpUrl)


def _check_http_url(value: str) -> str:
    """Validate as an http(s) URL but keep the caller's text (HttpUrl would normalise it)."""
    value = value.strip()
    try:
        _http_url.validate_python(value)
    except ValidationError as e:
        raise ValueError(e.errors()[0]["msg"]) from e
    return value


ProductUrl = Annotated[str, AfterValidator(_check_http_url)]


class AnalyzeRequest(RpcModel):
    url: ProductUrl


class ProductOut(RpcModel):
    name: str
    price: str
    description: str
    images: list[str] = []
    source: str


class AnalyzeResponse(RpcModel):
    video_id: int
    product: ProductOut
