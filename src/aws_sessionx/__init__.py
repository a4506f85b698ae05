"""
aws-sessionx
boto3/botocore session builder with retries, request instrumentation and lazy STS AssumeRole.

Quick use:
----------
from aws_sessionx import Config, create_sessions
sessions = create_sessions(Config(aws_profiles=["prod", "staging"], aws_assume_role="arn:aws:iam::123456789012:role/dns"))
"""
__version__ = "0.1.0"

from .config import Config, SessionConfig, load_config
from .instrumented import RequestInstrumentation, last_path_segment
from .session import (
    DEFAULT_PROFILE,
    ConfigLoadError,
    FatalConstructionError,
    Generation,
    SessionCreationError,
    build_client,
    create_default_core_session,
    create_default_session,
    create_sessions,
    new_session,
)
from .sts import AssumeRoleProvider

__all__ = [
    "Config",
    "SessionConfig",
    "load_config",
    "RequestInstrumentation",
    "last_path_segment",
    "DEFAULT_PROFILE",
    "ConfigLoadError",
    "FatalConstructionError",
    "Generation",
    "SessionCreationError",
    "build_client",
    "create_default_core_session",
    "create_default_session",
    "create_sessions",
    "new_session",
    "AssumeRoleProvider",
]
