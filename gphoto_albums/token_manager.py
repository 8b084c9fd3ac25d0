from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .authorize import AuthorizationFlow
from .config import ClientConfig
from .credential import Credential
from .errors import CorruptStore, CredentialNotFound, RefreshRejected
from .refresh import RefreshFlow
from .store import DEFAULT_TOKEN_FILE, CredentialStore
from .utils import Clock, now_ms


class TokenManager:
    """Decides, per call, whether to authorize, refresh or reuse the saved token.

    Branches, in order:

    1. Nothing usable on disk (missing or corrupt file): run the interactive
       authorization flow.
    2. Saved credential whose expiry is still ahead, or unknown: mint a new
       access token through the refresh grant.
    3. Saved credential whose expiry has passed: return the saved access
       token as is, without refreshing.

    Any new token material is saved before it is returned. Save failures are
    logged by the store and never raised.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        authorization_flow: AuthorizationFlow,
        refresh_flow: RefreshFlow,
        clock: Clock = now_ms,
        reauthorize_on_rejected_refresh: bool = False,
    ) -> None:
        self._store = store
        self._authorization_flow = authorization_flow
        self._refresh_flow = refresh_flow
        self._clock = clock
        self._reauthorize_on_rejected_refresh = reauthorize_on_rejected_refresh

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        token_file: Union[str, Path] = DEFAULT_TOKEN_FILE,
        timeout_s: Optional[float] = None,
        reauthorize_on_rejected_refresh: bool = False,
    ) -> TokenManager:
        flow_kwargs = {} if timeout_s is None else {"timeout_s": timeout_s}
        return cls(
            store=CredentialStore(token_file),
            authorization_flow=AuthorizationFlow(config, **flow_kwargs),
            refresh_flow=RefreshFlow(config),
            reauthorize_on_rejected_refresh=reauthorize_on_rejected_refresh,
        )

    def get_access_token(self) -> str:
        return self.get_credential().access_token

    def get_credential(self) -> Credential:
        stored = self._load_stored()
        if stored is None:
            return self._authorize()

        if stored.has_expired(self._clock()):
            logger.info("Using current access token")
            return stored

        if not stored.refresh_token:
            logger.warning("Saved credential has no refresh token; authorization required")
            return self._authorize()

        try:
            return self._refresh(stored, stored.refresh_token)
        except RefreshRejected:
            if not self._reauthorize_on_rejected_refresh:
                raise
            logger.warning("Refresh token rejected; starting a new authorization")
            return self._authorize()

    def _load_stored(self) -> Optional[Credential]:
        try:
            return self._store.load()
        except CredentialNotFound:
            return None
        except CorruptStore as e:
            logger.warning("Ignoring unreadable credential file: {}", e)
            return None

    def _authorize(self) -> Credential:
        credential = self._authorization_flow.run()
        self._store.save(credential)
        return credential

    def _refresh(self, stored: Credential, refresh_token: str) -> Credential:
        result = self._refresh_flow.refresh(refresh_token)
        credential = replace(
            stored,
            access_token=result.access_token,
            expiry_date=result.expiry_date if result.expiry_date is not None else stored.expiry_date,
            refresh_token=result.refresh_token or refresh_token,
        )
        self._store.save(credential)
        return credential
