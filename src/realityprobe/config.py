import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Upper bound for handshakes in flight, shared by settings and the CLI.
MAX_CONCURRENT_PROBES = 64

# Domain pool used by the original sing-box installer.
DEFAULT_DOMAIN_LIST_URL = (
    "https://gist.githubusercontent.com/cj3343/8d38d603440ea50105319d7c09909faf"
    "/raw/47e05fcfdece890d1480f462afadc0baffcbb120/domain-list.txt"
)


class Settings(BaseSettings):
    log_level: str = "info"
    domain_list_url: str = DEFAULT_DOMAIN_LIST_URL
    probe_port: int = Field(default=443, ge=1, le=65535)
    probe_timeout: float = Field(default=1.0, gt=0)
    fetch_timeout: float = Field(default=10.0, gt=0)
    max_concurrent_probes: int = Field(default=16, ge=1, le=MAX_CONCURRENT_PROBES)

    model_config = {"env_prefix": "REALITYPROBE_", "env_file": ".env", "extra": "ignore"}

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = logging.getLevelNamesMapping().get(v.upper())
        if level is None:
            raise ValueError(f"Invalid log level: {v!r}. Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v

    @field_validator("domain_list_url")
    @classmethod
    def _strip_source(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("domain_list_url must not be empty")
        return v


settings = Settings()
