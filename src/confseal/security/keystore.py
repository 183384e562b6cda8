"""OS keystore integration using keyring for the repository publishing token.

The token for the repository uploader can live in the OS keystore instead of
an environment variable. Only the token is stored here; envelope passwords
are never persisted. Do not assume keyring provides hardware-backed security
on all platforms.
"""
import logging
from typing import Optional

from confseal.core.exceptions import KeystoreError

try:
    import keyring
    from keyring.errors import KeyringError, PasswordDeleteError
except ImportError:
    keyring = None

logger = logging.getLogger(__name__)

SERVICE = "confseal"
TOKEN_ACCOUNT = "github-token"


def _require_keyring():
    if keyring is None:
        raise KeystoreError("keyring package is not available; install keyring to use keystore features")


def assess_keyring_backend() -> tuple[bool, str]:
    """Return (is_secure, message) describing the current keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms. If `keyring` is not available this returns (False, reason).
    """
    if keyring is None:
        return False, "keyring package is not installed"

    try:
        backend = keyring.get_keyring()
    except Exception as e:
        return False, f"failed to get keyring backend: {e}"

    name = backend.__class__.__name__
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("Plaintext", "Uncrypted", "Simple", "File", "Null", "Fail")
    if any(tok in name for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    if "Win" in name or "Keychain" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"


def save_token(token: str, service: str = SERVICE, account: str = TOKEN_ACCOUNT, force: bool = False) -> None:
    """Persist the publishing token under (service, account).

    Refuses backends that look insecure unless ``force`` is set.
    """
    _require_keyring()
    if not token:
        raise KeystoreError("refusing to store an empty token")
    if not force:
        secure, msg = assess_keyring_backend()
        if not secure:
            raise KeystoreError(
                f"refusing to store token in OS keystore: {msg}; "
                "pass force=True to override if you understand the risk"
            )
    try:
        keyring.set_password(service, account, token)
    except KeyringError as e:
        raise KeystoreError(f"failed to store token: {e}") from e
    logger.info("stored publishing token in keyring (%s/%s)", service, account)


def load_token(service: str = SERVICE, account: str = TOKEN_ACCOUNT) -> Optional[str]:
    """Load the publishing token; returns None when nothing is stored."""
    _require_keyring()
    try:
        return keyring.get_password(service, account)
    except KeyringError as e:
        raise KeystoreError(f"failed to read token: {e}") from e


def delete_token(service: str = SERVICE, account: str = TOKEN_ACCOUNT) -> bool:
    """Remove the stored token. Returns False when there was nothing to delete."""
    _require_keyring()
    try:
        keyring.delete_password(service, account)
    except PasswordDeleteError:
        return False
    except KeyringError as e:
        raise KeystoreError(f"failed to delete token: {e}") from e
    return True
