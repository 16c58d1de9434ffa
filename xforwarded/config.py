import json
from functools import lru_cache
from typing import Annotated, List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    app_name: str = 'X-Forwarded Header Filter'
    debug: bool = False

    trust_any_proxy: bool = False
    trust_reserved_subnets: bool = False
    trusted_proxies: Annotated[List[str], NoDecode] = Field(default_factory=list)
    # None trusts every forwarded header; an empty list trusts none.
    trusted_forwarded_headers: Annotated[List[str] | None, NoDecode] = None
    ambiguous_header_policy: Literal['reject_request', 'skip_header'] = 'reject_request'

    @field_validator('trusted_proxies', 'trusted_forwarded_headers', mode='before')
    @classmethod
    def split_list_settings(cls, value: str | List[str] | None) -> List[str] | None:
        return split_setting_list(value)


def split_setting_list(value: str | List[str] | None) -> List[str] | None:
    """Accept a JSON list or a comma-separated string; drop blank items."""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if stripped.startswith('['):
        parsed = json.loads(stripped)
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
    return [item.strip() for item in value.split(',') if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
