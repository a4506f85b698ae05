import logging
from typing import Any, Callable, Dict, Optional

from botocore.credentials import (
    AssumeRoleCredentialFetcher,
    CredentialProvider,
    DeferredRefreshableCredentials,
)
from botocore.exceptions import NoCredentialsError

log = logging.getLogger(__name__)


def assume_role_extra_args(external_id: Optional[str] = None,
                           session_name: Optional[str] = None,
                           duration_seconds: Optional[int] = None) -> Dict[str, Any]:
    """Optional sts:AssumeRole parameters. Only the ones that are set are included."""
    params: Dict[str, Any] = {}
    if external_id: params["ExternalId"] = external_id
    if session_name: params["RoleSessionName"] = session_name
    if duration_seconds: params["DurationSeconds"] = int(duration_seconds)
    return params


class AssumeRoleProvider(CredentialProvider):
    """
    Credential provider that assumes ``role_arn`` on top of ``source_session``.

    Nothing is resolved when the provider is loaded: the source credentials are
    looked up and STS is called the first time the credentials are used, and
    again whenever botocore decides they are about to expire.
    """
    METHOD = "assume-role"
    CANONICAL_NAME = "custom-assume-role"

    def __init__(self, source_session, role_arn: str,
                 external_id: Optional[str] = None,
                 session_name: Optional[str] = None,
                 duration_seconds: Optional[int] = None):
        super().__init__()
        self.source_session = source_session
        self.role_arn = role_arn
        self.external_id = external_id or None
        self.extra_args = assume_role_extra_args(external_id, session_name, duration_seconds)

    def load(self) -> DeferredRefreshableCredentials:
        return DeferredRefreshableCredentials(
            refresh_using=self._make_refresher(),
            method=self.METHOD,
        )

    def _make_refresher(self) -> Callable[[], Dict[str, Any]]:
        fetcher: Optional[AssumeRoleCredentialFetcher] = None

        def refresh() -> Dict[str, Any]:
            nonlocal fetcher
            if fetcher is None:
                source_credentials = self.source_session.get_credentials()
                if source_credentials is None:
                    raise NoCredentialsError()
                fetcher = AssumeRoleCredentialFetcher(
                    client_creator=self.source_session.create_client,
                    source_credentials=source_credentials,
                    role_arn=self.role_arn,
                    extra_args=dict(self.extra_args),
                )
            log.debug("fetching credentials for role %s", self.role_arn)
            return fetcher.fetch_credentials()

        return refresh
