from typing import Literal, Self

from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jenkins_mcp.config.base import BaseJenkinsMCPModel, BaseJenkinsMCPSettings

LogLevelType = Literal["ERROR", "WARNING", "INFO", "DEBUG", "CRITICAL"]
TransportType = Literal["stdio", "http"]

MIN_TIMEOUT_SECONDS = 1.0
MAX_TIMEOUT_SECONDS = 300.0


class ApplicationSettings(BaseSettings):
    log_level: LogLevelType = "INFO"
    transport: TransportType = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="APPLICATION__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class TLSSettings(BaseJenkinsMCPModel):
    skip_verify: bool = False
    ca_cert: str | None = None


class RetrySettings(BaseJenkinsMCPModel):
    max_attempts: int = Field(default=3, ge=0)
    backoff: float = Field(default=1.0, ge=0)


class JenkinsSettings(BaseJenkinsMCPSettings):
    url: AnyHttpUrl
    username: str | None = None
    password: str | None = Field(default=None, json_schema_extra={"sensitive": True})
    api_token: str | None = Field(default=None, json_schema_extra={"sensitive": True})
    timeout: float = 30.0
    tls: TLSSettings = Field(default_factory=TLSSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    crumb_strict: bool = False
    stop_settle_delay: float = Field(default=0.5, ge=0)

    model_config = SettingsConfigDict(env_prefix="JENKINS__")

    @property
    def base_url(self) -> str:
        return str(self.url).rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, timeout: float) -> float:
        if timeout <= 0:
            raise ValueError("timeout must be greater than zero")
        if timeout < MIN_TIMEOUT_SECONDS:
            raise ValueError(f"timeout must be at least {MIN_TIMEOUT_SECONDS}s")
        if timeout > MAX_TIMEOUT_SECONDS:
            raise ValueError(f"timeout must not exceed {MAX_TIMEOUT_SECONDS}s")
        return timeout

    @model_validator(mode="after")
    def validate_authentication(self) -> Self:
        if self.api_token and not self.username:
            raise ValueError(
                "username is required when using API token authentication"
            )
        if not self.username or not (self.password or self.api_token):
            raise ValueError(
                "authentication required: provide either username/password or username/API token"
            )
        return self


def load_settings(config_path: str | None = None) -> JenkinsSettings:
    settings_cls = JenkinsSettings
    if config_path:
        settings_cls = type(
            "JenkinsSettings",
            (JenkinsSettings,),
            {"model_config": SettingsConfigDict(yaml_file=config_path)},
        )
    return settings_cls()  # type: ignore[call-arg]
