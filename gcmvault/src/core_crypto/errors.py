"""
Error types for the AES-256-GCM core.

Taxonomy:
- Construction errors: wrong key length (InvalidKeySize)
- Programming errors: block transform on a non-16-byte buffer (InvalidBlockSize)
- Call-time validation errors: wrong nonce or tag length
- Length limits: AAD or ciphertext too long for GCM (DataTooLong)
- Misuse at runtime: AAD after ciphertext in GHASH (GHASHPhaseError)
- Nonce bookkeeping: a tracked nonce was offered twice (NonceReuseError),
  or a key reached its random-nonce message cap (NonceLimitExceeded)

Every class also derives from ValueError or RuntimeError, so callers
that catch those builtins keep working.

Authentication failure is deliberately NOT in this module: it is a
normal return value of open(), see src.aead.aes_gcm.AuthenticationFailure.
"""


class GCMVaultError(Exception):
    """Base class for all gcmvault errors."""
    pass


class InvalidKeySize(GCMVaultError, ValueError):
    """Raised when a key is not exactly 32 bytes."""
    pass


class InvalidBlockSize(GCMVaultError, ValueError):
    """Raised when a block transform receives anything but 16 bytes."""
    pass


class InvalidNonceSize(GCMVaultError, ValueError):
    """Raised when a nonce is not exactly 12 bytes."""
    pass


class InvalidTagSize(GCMVaultError, ValueError):
    """Raised when a tag passed to open() is not exactly 16 bytes."""
    pass


class NonceReuseError(GCMVaultError, ValueError):
    """Raised by nonce-tracking ciphers when a nonce is offered twice."""
    pass


class DataTooLong(GCMVaultError, ValueError):
    """Raised when AAD or ciphertext exceeds the GCM length limits."""
    pass


class GHASHPhaseError(GCMVaultError, RuntimeError):
    """Raised when associated data is fed to GHASH after ciphertext."""
    pass


class NonceLimitExceeded(GCMVaultError, RuntimeError):
    """Raised when a key has encrypted as many random-nonce messages as it safely can."""
    pass
