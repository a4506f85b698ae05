import os
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

RetryMode = Literal["legacy", "standard", "adaptive"]


class SessionConfig(BaseModel):
    """Options for building one AWS session."""

    assume_role: Optional[str] = None
    assume_role_external_id: Optional[str] = None
    api_retries: int = Field(3, ge=0)
    profile: Optional[str] = None
    region: Optional[str] = None
    role_session_name: Optional[str] = None
    role_duration_seconds: Optional[int] = Field(None, ge=900)
    retry_mode: RetryMode = "standard"
    max_pool_connections: Optional[int] = Field(None, ge=1)
    connect_timeout: Optional[int] = Field(None, ge=0)
    read_timeout: Optional[int] = Field(None, ge=0)

    @field_validator(
        "assume_role", "assume_role_external_id", "profile", "region", "role_session_name",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Config(BaseModel):
    aws_assume_role: Optional[str] = None
    aws_assume_role_external_id: Optional[str] = None
    aws_api_retries: int = Field(3, ge=0)
    aws_profiles: List[str] = Field(default_factory=list)
    aws_region: Optional[str] = None
    aws_role_session_name: Optional[str] = None
    aws_role_duration_seconds: Optional[int] = Field(None, ge=900)
    aws_retry_mode: RetryMode = "standard"
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"

    def session_config(self, profile: Optional[str] = None) -> SessionConfig:
        return SessionConfig(
            assume_role=self.aws_assume_role,
            assume_role_external_id=self.aws_assume_role_external_id,
            api_retries=self.aws_api_retries,
            profile=profile,
            region=self.aws_region,
            role_session_name=self.aws_role_session_name,
            role_duration_seconds=self.aws_role_duration_seconds,
            retry_mode=self.aws_retry_mode,
        )


def _split_profiles(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def load_config() -> Config:
    """Read the process-wide config from the environment. Bad values raise ``ValidationError``."""
    return Config(
        aws_assume_role=os.getenv("AWS_ASSUME_ROLE"),
        aws_assume_role_external_id=os.getenv("AWS_ASSUME_ROLE_EXTERNAL_ID"),
        aws_api_retries=os.getenv("AWS_API_RETRIES", "3"),
        aws_profiles=_split_profiles(os.getenv("AWS_PROFILES")),
        aws_region=os.getenv("AWS_REGION") or None,
        aws_role_session_name=os.getenv("AWS_ROLE_SESSION_NAME") or None,
        aws_role_duration_seconds=os.getenv("AWS_ROLE_DURATION_SECONDS") or None,
        aws_retry_mode=os.getenv("AWS_RETRY_MODE", "standard"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "text"),
    )
