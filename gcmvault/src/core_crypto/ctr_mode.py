"""
GCM Counter Mode (GCTR)

Turns the AES-256 block transform into a stream cipher: successive
counter blocks are encrypted and the result is XORed with the data.

Counter block layout for a 96-bit nonce:

    J0        = nonce || 0x00000001   (masks the authentication tag)
    inc32(J0) = nonce || 0x00000002   (first payload keystream block)

Only the rightmost 32 bits count, wrapping modulo 2^32; the nonce part
never changes. Encryption and decryption are the same XOR, so both go
through CounterMode.transform(). Nothing is padded: output length always
equals input length.
"""

import struct

from .aes_block import AES256
from .fixed_bytes import Block, Nonce, BLOCK_SIZE, NONCE_SIZE, as_bytes, zeroize


def inc32(counter_block: bytes) -> bytes:
    """
    Increment the rightmost 32 bits of a counter block, modulo 2^32.

    Args:
        counter_block: 16-byte counter block

    Returns:
        New 16-byte counter block
    """
    counter_block = Block(counter_block)
    (ctr,) = struct.unpack(">I", counter_block[NONCE_SIZE:])
    return Block(counter_block[:NONCE_SIZE] + struct.pack(">I", (ctr + 1) & 0xFFFFFFFF))


def initial_counter_block(nonce: bytes) -> bytes:
    """Build J0 = nonce || 0x00000001 from a 12-byte nonce."""
    return Block(Nonce(nonce) + b'\x00\x00\x00\x01')


class CounterMode:
    """
    Counter-mode keystream generator over an AES256 core.

    Holds no per-message state: every call takes its own starting
    counter block, so one instance can serve concurrent callers.
    """

    def __init__(self, cipher: AES256):
        self._cipher = cipher

    def keystream(self, counter_block: bytes, length: int) -> bytes:
        """
        Generate `length` keystream bytes starting at `counter_block`.

        ceil(length / 16) counter blocks are encrypted; the last one is
        truncated.
        """
        if length < 0:
            raise ValueError("Keystream length must be non-negative")

        ctr = Block(counter_block)
        stream = bytearray()
        for _ in range((length + BLOCK_SIZE - 1) // BLOCK_SIZE):
            stream.extend(self._cipher.encrypt_block(ctr))
            ctr = inc32(ctr)
        out = bytes(stream[:length])
        zeroize(stream)
        return out

    def transform(self, counter_block: bytes, data: bytes) -> bytes:
        """
        XOR data with the keystream starting at counter_block.

        Args:
            counter_block: Initial 16-byte counter block
            data: Plaintext or ciphertext of any length

        Returns:
            Output of the same length as data

        Raises:
            TypeError: If data is not bytes-like
        """
        data = as_bytes(data)
        if not data:
            return b''

        stream = bytearray(self.keystream(counter_block, len(data)))
        out = bytes(a ^ b for a, b in zip(data, stream))
        zeroize(stream)
        return out

    # Counter mode is its own inverse
    encrypt = transform
    decrypt = transform
