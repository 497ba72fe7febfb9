"""
AES-256-GCM Authenticated Encryption

Combines the from-scratch AES-256 core, counter mode and GHASH into an
AEAD cipher:

    seal(nonce, plaintext, aad) -> (ciphertext, tag)
    open(nonce, ciphertext, tag, aad) -> plaintext | AUTHENTICATION_FAILURE

Construction (NIST SP 800-38D, 96-bit nonce):
    H   = E_K(0^128)                    hash subkey, derived once per key
    J0  = nonce || 0x00000001
    C   = GCTR(inc32(J0), P)
    S   = GHASH_H(A, C)
    T   = S XOR E_K(J0)

Message Format (SealedMessage):
    [nonce (12 bytes) | ciphertext | tag (16 bytes)]

Security notes:
- open() checks the tag BEFORE decrypting; unauthenticated ciphertext
  never produces plaintext, not even partially.
- A (key, nonce) pair must never encrypt two different plaintexts.
  AES256GCM leaves that to the caller; AESGCMCipher generates and
  tracks nonces itself.
"""

import hmac
import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Optional, Set, Tuple, Union

from cryptography.exceptions import InvalidTag

from ..core_crypto.aes_block import AES256
from ..core_crypto.ctr_mode import CounterMode, inc32, initial_counter_block
from ..core_crypto.errors import NonceLimitExceeded, NonceReuseError
from ..core_crypto.fixed_bytes import (
    Key, Nonce, Tag, BLOCK_SIZE, KEY_SIZE, NONCE_SIZE, TAG_SIZE,
    as_bytes, xor_bytes, zeroize,
)
from ..core_crypto.ghash import ghash


logger = logging.getLogger(__name__)

# SP 800-38D 8.3: at most 2^32 messages per key with random 96-bit nonces
MAX_RANDOM_NONCE_MESSAGES = 2 ** 32


# ============================================================================
# Authentication failure signal
# ============================================================================

class AuthenticationFailure:
    """
    Result of open() when the tag does not verify.

    There is exactly one instance, AUTHENTICATION_FAILURE. It is falsy,
    so `if not result:` rejects it, but callers should compare with
    `is AUTHENTICATION_FAILURE` because an empty plaintext is falsy too.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "AUTHENTICATION_FAILURE"


AUTHENTICATION_FAILURE = AuthenticationFailure()


# ============================================================================
# Wire container
# ============================================================================

@dataclass(frozen=True)
class SealedMessage:
    """
    Container for everything needed to open a message.

    Format: [nonce | ciphertext | tag]
    """
    nonce: bytes          # 12 bytes
    ciphertext: bytes     # Same length as the plaintext
    tag: bytes            # 16 bytes

    def to_bytes(self) -> bytes:
        """Serialize as nonce (12) | ciphertext | tag (16)."""
        return bytes(self.nonce) + bytes(self.ciphertext) + bytes(self.tag)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'SealedMessage':
        """
        Deserialize from bytes.

        Raises:
            ValueError: If data is too short to hold a nonce and a tag
        """
        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise ValueError(
                f"Sealed message must be at least {NONCE_SIZE + TAG_SIZE} bytes, "
                f"got {len(data)} bytes"
            )
        return cls(
            nonce=bytes(data[:NONCE_SIZE]),
            ciphertext=bytes(data[NONCE_SIZE:len(data) - TAG_SIZE]),
            tag=bytes(data[len(data) - TAG_SIZE:]),
        )


# ============================================================================
# AEAD cipher
# ============================================================================

class AES256GCM:
    """
    AES-256-GCM with caller-supplied nonces.

    The key schedule and hash subkey H are derived once here. After
    construction the instance is read-only and may be shared across
    threads, provided every seal() call uses a fresh nonce.

    Example:
        >>> gcm = AES256GCM(key)
        >>> ciphertext, tag = gcm.seal(nonce, b"attack at dawn", b"header")
        >>> gcm.open(nonce, ciphertext, tag, b"header")
        b'attack at dawn'
    """

    def __init__(self, key: bytes):
        """
        Args:
            key: 256-bit (32-byte) key

        Raises:
            InvalidKeySize: If key is not 32 bytes
        """
        key = Key(key)
        self._core = AES256(key)
        self._ctr = CounterMode(self._core)
        self._h = bytearray(self._core.encrypt_block(bytes(BLOCK_SIZE)))
        self._wiped = False

    def seal(self, nonce: bytes, plaintext: bytes,
             aad: Optional[bytes] = b"") -> Tuple[bytes, bytes]:
        """
        Encrypt and authenticate.

        Args:
            nonce: 12-byte nonce, unique per message under this key
            plaintext: Data to encrypt (any length, may be empty)
            aad: Authenticated but unencrypted data (may be empty)

        Returns:
            Tuple of (ciphertext, tag); ciphertext has len(plaintext) bytes

        Raises:
            InvalidNonceSize: If nonce is not 12 bytes
            TypeError: If an argument is not bytes-like
            DataTooLong: If plaintext or aad exceeds the GCM limits
        """
        self._check_alive()
        j0 = initial_counter_block(Nonce(nonce))
        plaintext = as_bytes(plaintext, "Plaintext")
        aad = b"" if aad is None else as_bytes(aad, "Associated data")

        ciphertext = self._ctr.transform(inc32(j0), plaintext)
        tag = self._compute_tag(j0, aad, ciphertext)

        logger.debug("Sealed %d bytes (aad %d bytes)", len(ciphertext), len(aad))
        return ciphertext, tag

    def open(self, nonce: bytes, ciphertext: bytes, tag: bytes,
             aad: Optional[bytes] = b"") -> Union[bytes, AuthenticationFailure]:
        """
        Verify and decrypt.

        The tag is recomputed and compared in constant time before any
        decryption happens.

        Args:
            nonce: 12-byte nonce used by seal()
            ciphertext: Encrypted data
            tag: 16-byte authentication tag
            aad: Associated data given to seal()

        Returns:
            The plaintext, or AUTHENTICATION_FAILURE if the tag is wrong

        Raises:
            InvalidNonceSize: If nonce is not 12 bytes
            InvalidTagSize: If tag is not 16 bytes
            TypeError: If an argument is not bytes-like
        """
        self._check_alive()
        j0 = initial_counter_block(Nonce(nonce))
        tag = Tag(tag)
        aad = b"" if aad is None else as_bytes(aad, "Associated data")
        ciphertext = as_bytes(ciphertext, "Ciphertext")

        expected = self._compute_tag(j0, aad, ciphertext)
        if not hmac.compare_digest(bytes(expected), bytes(tag)):
            logger.warning(
                "GCM authentication failed (ciphertext %d bytes, aad %d bytes)",
                len(ciphertext), len(aad)
            )
            return AUTHENTICATION_FAILURE

        plaintext = self._ctr.transform(inc32(j0), ciphertext)
        logger.debug("Opened %d bytes (aad %d bytes)", len(plaintext), len(aad))
        return plaintext

    def decrypt(self, nonce: bytes, ciphertext: bytes, tag: bytes,
                aad: Optional[bytes] = b"") -> bytes:
        """
        Like open(), but raises on authentication failure.

        Raises:
            InvalidTag: If authentication fails
        """
        result = self.open(nonce, ciphertext, tag, aad)
        if result is AUTHENTICATION_FAILURE:
            raise InvalidTag()
        return result

    def seal_message(self, nonce: bytes, plaintext: bytes,
                     aad: Optional[bytes] = b"") -> SealedMessage:
        """seal() packaged together with its nonce."""
        ciphertext, tag = self.seal(nonce, plaintext, aad)
        return SealedMessage(bytes(nonce), ciphertext, tag)

    def open_message(self, message: SealedMessage,
                     aad: Optional[bytes] = b"") -> Union[bytes, AuthenticationFailure]:
        """open() a SealedMessage."""
        return self.open(message.nonce, message.ciphertext, message.tag, aad)

    def wipe(self) -> None:
        """Zero the round keys and hash subkey. The instance is unusable afterwards."""
        zeroize(self._h)
        self._core.wipe()
        self._wiped = True

    def _compute_tag(self, j0: bytes, aad: bytes, ciphertext: bytes) -> bytes:
        s = ghash(bytes(self._h), aad, ciphertext)
        return Tag(xor_bytes(s, self._core.encrypt_block(j0)))

    def _check_alive(self) -> None:
        if self._wiped:
            raise RuntimeError("Cipher has been wiped")

    def __repr__(self) -> str:
        return f"AES256GCM({'wiped' if self._wiped else 'ready'})"


# ============================================================================
# Nonce-managing cipher
# ============================================================================

def generate_nonce() -> bytes:
    """
    Generate a random nonce for AES-GCM.

    CRITICAL: Never reuse a nonce with the same key!

    Returns:
        12 random bytes
    """
    return secrets.token_bytes(NONCE_SIZE)


def generate_key() -> bytes:
    """Generate a random 256-bit key."""
    return secrets.token_bytes(KEY_SIZE)


class AESGCMCipher:
    """
    AES-256-GCM that picks its own nonces.

    Every nonce this instance encrypts with is remembered, and a repeat
    is refused. The record lives as long as the instance, so use one
    instance per key.

    Random nonces keep collisions negligible only up to
    MAX_RANDOM_NONCE_MESSAGES messages per key. Once that many nonces are
    on record, encrypt() raises NonceLimitExceeded and the key must be
    rotated. Memory grows with the record: about 12 bytes of nonce plus
    set overhead per message.
    """

    def __init__(self, key: bytes):
        """
        Args:
            key: 256-bit (32-byte) key
        """
        self._gcm = AES256GCM(key)
        self._used_nonces: Set[bytes] = set()
        self._lock = threading.Lock()

    def _reserve(self, nonce: bytes) -> bool:
        with self._lock:
            if nonce in self._used_nonces:
                return False
            if len(self._used_nonces) >= MAX_RANDOM_NONCE_MESSAGES:
                raise NonceLimitExceeded(
                    f"Key has encrypted {MAX_RANDOM_NONCE_MESSAGES} messages; rotate it"
                )
            self._used_nonces.add(nonce)
            return True

    def encrypt(self, plaintext: bytes,
                associated_data: bytes = None) -> Tuple[bytes, bytes, bytes]:
        """
        Encrypt plaintext under a freshly generated nonce.

        Args:
            plaintext: Data to encrypt
            associated_data: Optional authenticated but not encrypted data

        Returns:
            Tuple of (nonce, ciphertext, tag)

        Raises:
            NonceLimitExceeded: If the key reached MAX_RANDOM_NONCE_MESSAGES
        """
        nonce = generate_nonce()
        while not self._reserve(nonce):
            nonce = generate_nonce()

        ciphertext, tag = self._gcm.seal(nonce, plaintext, associated_data)
        return nonce, ciphertext, tag

    def encrypt_with_nonce(self, nonce: bytes, plaintext: bytes,
                           associated_data: bytes = None) -> Tuple[bytes, bytes]:
        """
        Encrypt under a caller-chosen nonce.

        Raises:
            InvalidNonceSize: If nonce is not 12 bytes
            NonceReuseError: If this instance already used the nonce
            NonceLimitExceeded: If the key reached MAX_RANDOM_NONCE_MESSAGES
        """
        nonce = Nonce(nonce)
        if not self._reserve(bytes(nonce)):
            raise NonceReuseError("Nonce already used with this key")
        return self._gcm.seal(nonce, plaintext, associated_data)

    def decrypt(self, nonce: bytes, ciphertext: bytes, tag: bytes,
                associated_data: bytes = None) -> bytes:
        """
        Decrypt ciphertext with AES-256-GCM.

        Args:
            nonce: 12-byte nonce
            ciphertext: Encrypted data
            tag: 16-byte authentication tag
            associated_data: Optional associated data

        Returns:
            Decrypted plaintext

        Raises:
            InvalidTag: If authentication fails
        """
        return self._gcm.decrypt(nonce, ciphertext, tag, associated_data)

    @property
    def nonces_used(self) -> int:
        with self._lock:
            return len(self._used_nonces)


# ============================================================================
# One-shot helpers
# ============================================================================

def seal(key: bytes, nonce: bytes, plaintext: bytes,
         aad: bytes = b"") -> Tuple[bytes, bytes]:
    """One-shot AES-256-GCM seal. Returns (ciphertext, tag)."""
    return AES256GCM(key).seal(nonce, plaintext, aad)


def open_(key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes,
          aad: bytes = b"") -> Union[bytes, AuthenticationFailure]:
    """One-shot AES-256-GCM open. Returns plaintext or AUTHENTICATION_FAILURE."""
    return AES256GCM(key).open(nonce, ciphertext, tag, aad)
