from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Credential:
    """The persisted authentication state.

    Attributes:
        access_token: Short-lived bearer token for API calls.
        refresh_token: Long-lived token used to mint new access tokens. The
            provider may withhold it on repeat consent.
        expiry_date: Milliseconds since the epoch after which access_token
            must not be trusted.
        scope: Granted scopes, passed through as returned by the provider.
        token_type: Usually "Bearer", passed through.
    """

    access_token: str
    refresh_token: Optional[str] = None
    expiry_date: Optional[int] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None

    def has_expired(self, now_ms: int) -> bool:
        return self.expiry_date is not None and self.expiry_date <= now_ms

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Credential:
        access_token = data["access_token"]
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("access_token must be a non-empty string")

        expiry_date = data.get("expiry_date")
        if expiry_date is not None:
            if isinstance(expiry_date, bool) or not isinstance(expiry_date, (int, float)):
                raise TypeError(f"expiry_date must be a number, got {type(expiry_date).__name__}")
            expiry_date = int(expiry_date)

        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or None,
            expiry_date=expiry_date,
            scope=data.get("scope"),
            token_type=data.get("token_type"),
        )

    @classmethod
    def from_token_response(cls, data: dict[str, Any], *, now_ms: int) -> Credential:
        """Build a credential from a token endpoint response body.

        The endpoint reports a relative ``expires_in`` (seconds); it is pinned
        to an absolute ``expiry_date`` using ``now_ms``.
        """
        expiry_date = data.get("expiry_date")
        expires_in = data.get("expires_in")
        if expires_in is not None:
            expiry_date = now_ms + int(expires_in) * 1000

        return cls.from_dict(
            {
                "access_token": data.get("access_token"),
                "refresh_token": data.get("refresh_token"),
                "expiry_date": expiry_date,
                "scope": data.get("scope"),
                "token_type": data.get("token_type"),
            }
        )
