"""
Exceptions for confseal
Everything raised on purpose derives from ConfsealError so callers have a
single catch-all for user-facing failures.
"""


class ConfsealError(Exception):
    # general container for errors
    pass


class UnsupportedFormatError(ConfsealError):
    # envelope declares an unknown version, algorithm or kdf
    pass


class DecryptionError(ConfsealError):
    # authentication failed: wrong password or corrupted envelope (never told apart)
    pass


class MalformedPackageError(ConfsealError):
    # packaged string / envelope json is not structurally valid
    pass


class EncryptionError(ConfsealError):
    # payload could not be serialized or the cipher call failed
    pass


class PayloadError(ConfsealError):
    # export payload could not be built or loaded
    pass


class EmptyExportError(PayloadError):
    # the selected export kind has nothing to export
    pass


class ConfigurationError(ConfsealError):
    # missing or invalid settings (e.g. publishing credentials)
    pass


class PublishError(ConfsealError):
    # raised when the repository upload fails; carries the HTTP status when known

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class KeystoreError(ConfsealError):
    # OS keyring missing or refused
    pass
