# Authenticated Encryption Module
"""
AES-256-GCM authenticated encryption built on the from-scratch core:
- AES256GCM: seal/open with caller-supplied nonces
- AESGCMCipher: generates and tracks its own nonces
- SealedMessage: [nonce | ciphertext | tag] container

Security features:
- Tag verified in constant time BEFORE decryption
- Authentication failure is a return value, not an exception,
  on the open() path
- Never reuse a nonce under the same key
"""

from .aes_gcm import (
    AES256GCM,
    AESGCMCipher,
    AuthenticationFailure,
    AUTHENTICATION_FAILURE,
    MAX_RANDOM_NONCE_MESSAGES,
    SealedMessage,
    generate_key,
    generate_nonce,
    seal,
    open_,
)

__all__ = [
    'AES256GCM',
    'AESGCMCipher',
    'AuthenticationFailure',
    'AUTHENTICATION_FAILURE',
    'MAX_RANDOM_NONCE_MESSAGES',
    'SealedMessage',
    'generate_key',
    'generate_nonce',
    'seal',
    'open_',
]
