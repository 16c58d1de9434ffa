from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictSchema(BaseModel):
    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True)


class HealthRead(StrictSchema):
    status: str = 'ok'


class EffectiveUriRead(StrictSchema):
    uri: str
    scheme: str
    host: str | None
    port: int | None
    peer: str | None
