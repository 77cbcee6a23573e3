"""Connection settings for a GraphQL endpoint."""

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from .errors import ConfigError


class GetitSettings(BaseSettings):
    """Endpoint settings read from ``GETIT_*`` environment variables.

    ``GETIT_HEADERS`` holds a JSON object of header names to values.
    """

    model_config = SettingsConfigDict(
        env_prefix="GETIT_",
        extra="ignore",
    )

    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = 30.0


class GetitConfig(BaseModel):
    """Endpoint URL, extra request headers and request timeout.

    Examples:
        config = GetitConfig(url="https://api.example.com/graphql")
        config.add_header("Authorization", "Bearer eyJhbGciOi...")

        # Or from GETIT_URL / GETIT_TIMEOUT / GETIT_HEADERS
        config = GetitConfig.from_env()
    """

    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("url")
    @classmethod
    def _url_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("url must not be empty")
        return value

    def add_header(self, name: str, value: str) -> "GetitConfig":
        """Add (or replace) a request header."""
        self.headers[name] = value
        return self

    @classmethod
    def from_env(cls, prefix: str = "GETIT_") -> "GetitConfig":
        """Build a config from environment variables.

        Reads ``{prefix}URL`` (required), ``{prefix}TIMEOUT`` and
        ``{prefix}HEADERS``.

        Raises:
            ConfigError: If the URL is missing or a value is malformed
        """
        try:
            settings = GetitSettings(_env_prefix=prefix)
        except SettingsError as exc:
            raise ConfigError(f"Cannot read {prefix}* settings: {exc}") from exc
        except ValidationError as exc:
            if any(e["type"] == "missing" and e["loc"] == ("url",) for e in exc.errors()):
                raise ConfigError(f"{prefix}URL is not set") from exc
            raise ConfigError(f"Invalid {prefix}* settings: {exc}") from exc

        try:
            return cls(**settings.model_dump())
        except ValidationError as exc:
            raise ConfigError(f"Invalid {prefix}* settings: {exc}") from exc
