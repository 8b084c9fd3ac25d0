from __future__ import annotations


class GphotoAuthError(RuntimeError):
    """Base class for every authentication failure raised by this package."""


class ConfigMissing(GphotoAuthError):
    """Client id/secret or redirect URI could not be resolved."""


class ListenerBindFailed(GphotoAuthError):
    """The local redirect listener could not bind its port."""


class AuthorizationDenied(GphotoAuthError):
    """The provider redirected back with an error instead of a code."""


class AuthorizationTimeout(GphotoAuthError):
    """No redirect arrived before the browser step timed out."""


class CodeExchangeFailed(GphotoAuthError):
    """The token endpoint rejected the authorization code or was unreachable."""


class RefreshRejected(GphotoAuthError):
    """The refresh token is invalid, expired or revoked; re-authorization is required."""


class RefreshTransportFailed(GphotoAuthError):
    """The refresh request never got a usable answer from the token endpoint."""


class PersistFailed(GphotoAuthError):
    """Writing the credential file failed."""


class CredentialNotFound(GphotoAuthError):
    """No credential has been saved yet."""


class CorruptStore(GphotoAuthError):
    """The credential file exists but cannot be parsed."""
