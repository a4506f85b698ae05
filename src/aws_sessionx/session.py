"""
Builds boto3/botocore sessions from a ``SessionConfig``.

Every session gets the same treatment regardless of which handle type the
caller asks for: shared config is loaded for the requested profile, retries
and the user agent go into the default client config, requests are
instrumented, and a lazy role-assumption provider replaces the default
credential chain when a role is configured.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Union

import boto3
import botocore.session
from botocore.config import Config as BotocoreConfig
from botocore.credentials import CredentialResolver
from botocore.exceptions import BotoCoreError

from . import __version__
from .config import Config, SessionConfig
from .instrumented import RequestInstrumentation
from .sts import AssumeRoleProvider

log = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
USER_AGENT = f"aws-sessionx/{__version__}"


class SessionCreationError(Exception):
    """Base class for failures while building a session."""


class ConfigLoadError(SessionCreationError):
    """botocore could not assemble the base configuration."""


class FatalConstructionError(SystemExit):
    """Raised at process startup when no usable session could be built."""


class Generation(str, Enum):
    BOTO3 = "boto3"
    BOTOCORE = "botocore"


def client_config(session_config: SessionConfig) -> BotocoreConfig:
    # botocore rewrites this retries dict in place on the first client it creates:
    # max_attempts becomes total_max_attempts (retries + 1)
    kwargs: Dict[str, Any] = {
        "retries": {"max_attempts": session_config.api_retries, "mode": session_config.retry_mode},
        "user_agent_extra": USER_AGENT,
    }
    if session_config.max_pool_connections is not None:
        kwargs["max_pool_connections"] = session_config.max_pool_connections
    if session_config.connect_timeout is not None:
        kwargs["connect_timeout"] = session_config.connect_timeout
    if session_config.read_timeout is not None:
        kwargs["read_timeout"] = session_config.read_timeout
    return BotocoreConfig(**kwargs)


def _base_session(session_config: SessionConfig) -> botocore.session.Session:
    session = botocore.session.Session(profile=session_config.profile)
    if session_config.region:
        session.set_config_variable("region", session_config.region)
    try:
        # parses the shared config files and validates the profile
        session.get_scoped_config()
    except BotoCoreError as err:
        raise ConfigLoadError(f"instantiating AWS session: {err}") from err

    session.set_default_client_config(client_config(session_config))
    RequestInstrumentation().register(session)
    return session


def _install_assume_role(session: botocore.session.Session, session_config: SessionConfig) -> None:
    if session_config.assume_role_external_id:
        log.info("Assuming role: %s with external id %s",
                 session_config.assume_role, session_config.assume_role_external_id)
    else:
        log.info("Assuming role: %s", session_config.assume_role)

    # STS is called with the profile's own credentials, never the assumed ones
    source = _base_session(session_config)
    provider = AssumeRoleProvider(
        source,
        session_config.assume_role,
        external_id=session_config.assume_role_external_id,
        session_name=session_config.role_session_name,
        duration_seconds=session_config.role_duration_seconds,
    )
    session.register_component("credential_provider", CredentialResolver(providers=[provider]))


def new_session(session_config: SessionConfig,
                generation: Generation = Generation.BOTO3
                ) -> Union[boto3.Session, botocore.session.Session]:
    """
    Build a session for ``session_config``.

    Returns a ``boto3.Session`` or the underlying ``botocore.session.Session``
    depending on ``generation``. Raises ``ConfigLoadError`` when botocore
    cannot load the shared configuration.
    """
    session = _base_session(session_config)
    if session_config.assume_role:
        _install_assume_role(session, session_config)

    if Generation(generation) is Generation.BOTOCORE:
        return session
    return boto3.Session(botocore_session=session)


def create_default_session(config: Config) -> boto3.Session:
    return new_session(config.session_config(), Generation.BOTO3)


def create_default_core_session(config: Config) -> botocore.session.Session:
    return new_session(config.session_config(), Generation.BOTOCORE)


def create_sessions(config: Config) -> Dict[str, boto3.Session]:
    """One session per configured profile, or a single ``default`` entry when none are set."""
    profiles = list(config.aws_profiles)
    if not profiles or profiles == [""]:
        return {DEFAULT_PROFILE: create_default_session(config)}

    sessions: Dict[str, boto3.Session] = {}
    for profile in profiles:
        sessions[profile] = new_session(config.session_config(profile), Generation.BOTO3)
        log.debug("session ready profile=%s", profile)
    return sessions


def build_client(sess: Union[boto3.Session, botocore.session.Session],
                 service_name: str,
                 region: Optional[str] = None):
    if isinstance(sess, boto3.Session):
        return sess.client(service_name, region_name=region)
    return sess.create_client(service_name, region_name=region)
