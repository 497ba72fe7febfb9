"""
GHASH Authenticator

Universal hash used by GCM. A running 16-byte accumulator Y starts at
zero and absorbs, in this order:

    1. associated data, in 16-byte blocks (last block zero-padded)
    2. ciphertext, in 16-byte blocks (last block zero-padded)
    3. the length block: bitlen(AAD) || bitlen(C), each 64-bit big-endian

with Y = (Y XOR block) * H in GF(2^128) at every step. Any other order
produces tags that no other GCM implementation accepts.
"""

import struct

from .errors import DataTooLong, GHASHPhaseError
from .fixed_bytes import Block, BLOCK_SIZE, as_bytes, zeroize
from .gf128 import gf128_mul


# SP 800-38D limits (in bits): AAD < 2^64, plaintext <= 2^39 - 256
MAX_AAD_BITS = (1 << 64) - 1
MAX_CIPHERTEXT_BITS = (1 << 39) - 256


def length_block(aad_len: int, ciphertext_len: int) -> bytes:
    """
    Build the final GHASH block from byte lengths.

    Args:
        aad_len: Length of the associated data in bytes
        ciphertext_len: Length of the ciphertext in bytes

    Returns:
        16 bytes: 64-bit big-endian bit-lengths of AAD and ciphertext
    """
    return struct.pack(">QQ", aad_len * 8, ciphertext_len * 8)


class GHASH:
    """
    Incremental GHASH over (AAD, ciphertext).

    AAD must be fully supplied before the first ciphertext byte. Both
    inputs may arrive in arbitrary-sized pieces; partial blocks are
    buffered until the next call or digest().

    Example:
        >>> g = GHASH(h)
        >>> g.update_aad(b"header")
        >>> g.update_ciphertext(ciphertext)
        >>> s = g.digest()
    """

    def __init__(self, h: bytes):
        """
        Args:
            h: 16-byte hash subkey, E_K(0^128)
        """
        self._h = Block(h).to_int()
        self._y = 0
        self._buffer = bytearray()
        self._aad_len = 0
        self._ct_len = 0
        self._in_ciphertext = False

    def _absorb(self, block: bytes) -> None:
        self._y = gf128_mul(self._y ^ int.from_bytes(block, 'big'), self._h)

    def _feed(self, data: bytes) -> None:
        buf = self._buffer
        buf.extend(data)
        full = len(buf) - len(buf) % BLOCK_SIZE
        for i in range(0, full, BLOCK_SIZE):
            self._absorb(buf[i:i + BLOCK_SIZE])
        del buf[:full]

    def _flush(self) -> None:
        """Absorb a pending partial block, zero-padded on the right."""
        if self._buffer:
            self._absorb(bytes(self._buffer).ljust(BLOCK_SIZE, b'\x00'))
            zeroize(self._buffer)
            self._buffer.clear()

    def update_aad(self, data: bytes) -> None:
        """
        Absorb associated data.

        Raises:
            GHASHPhaseError: If ciphertext has already been absorbed
            DataTooLong: If total AAD would exceed 2^64 - 1 bits
        """
        data = as_bytes(data, "Associated data")
        if self._in_ciphertext:
            raise GHASHPhaseError("Associated data must be supplied before ciphertext")
        if (self._aad_len + len(data)) * 8 > MAX_AAD_BITS:
            raise DataTooLong("Associated data too long for GCM")
        self._aad_len += len(data)
        self._feed(data)

    def update_ciphertext(self, data: bytes) -> None:
        """
        Absorb ciphertext. Switches the hash into its ciphertext phase.

        Raises:
            DataTooLong: If total ciphertext would exceed 2^39 - 256 bits
        """
        data = as_bytes(data, "Ciphertext")
        if (self._ct_len + len(data)) * 8 > MAX_CIPHERTEXT_BITS:
            raise DataTooLong("Ciphertext too long for GCM")
        if not self._in_ciphertext:
            self._flush()
            self._in_ciphertext = True
        self._ct_len += len(data)
        self._feed(data)

    def digest(self) -> bytes:
        """
        Return the raw GHASH value S.

        Does not modify the running state, so calling it twice gives the
        same answer.
        """
        y = self._y
        if self._buffer:
            y = gf128_mul(y ^ int.from_bytes(bytes(self._buffer).ljust(BLOCK_SIZE, b'\x00'), 'big'),
                          self._h)
        y = gf128_mul(y ^ int.from_bytes(length_block(self._aad_len, self._ct_len), 'big'),
                      self._h)
        return Block.from_int(y)

    @property
    def aad_length(self) -> int:
        return self._aad_len

    @property
    def ciphertext_length(self) -> int:
        return self._ct_len


def ghash(h: bytes, aad: bytes, ciphertext: bytes) -> bytes:
    """
    One-shot GHASH over (aad, ciphertext).

    Args:
        h: 16-byte hash subkey
        aad: Associated data (may be empty)
        ciphertext: Ciphertext (may be empty)

    Returns:
        16-byte GHASH digest S
    """
    g = GHASH(h)
    g.update_aad(aad)
    g.update_ciphertext(ciphertext)
    return g.digest()
