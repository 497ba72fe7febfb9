"""
Fixed-Size Byte Types

Immutable bytes subclasses that enforce their length once, at
construction, instead of scattering length checks through call sites:

    Block  - 16 bytes (AES block, GHASH element, counter block)
    Key    - 32 bytes (AES-256 key)
    Nonce  - 12 bytes (GCM IV)
    Tag    - 16 bytes (GCM authentication tag)

Instances compare equal to plain bytes with the same content, so they
can be passed anywhere bytes are expected.
"""

from typing import Type, Union

from .errors import (
    InvalidBlockSize, InvalidKeySize, InvalidNonceSize, InvalidTagSize
)


# Constants
BLOCK_SIZE = 16     # 128 bits
KEY_SIZE = 32       # 256 bits
NONCE_SIZE = 12     # 96 bits
TAG_SIZE = 16       # 128 bits

BytesLike = Union[bytes, bytearray, memoryview]


def as_bytes(data: BytesLike, label: str = "data") -> bytes:
    """
    Copy a bytes-like value into immutable bytes.

    Only objects exposing the buffer protocol are accepted; an int would
    otherwise turn into that many zero bytes.

    Raises:
        TypeError: If data is not bytes-like (int, str, ...)
    """
    if isinstance(data, str):
        raise TypeError(f"{label} must be bytes-like, not str")
    try:
        view = memoryview(data)
    except TypeError:
        raise TypeError(
            f"{label} must be bytes-like, not {type(data).__name__}"
        ) from None
    return view.tobytes()


class _FixedBytes(bytes):
    """Base class: a bytes value whose length is checked on creation."""

    SIZE: int = 0
    ERROR: Type[ValueError] = ValueError
    LABEL: str = "value"

    def __new__(cls, data: BytesLike = None):
        if data is None:
            data = bytes(cls.SIZE)
        data = as_bytes(data, cls.LABEL)
        if len(data) != cls.SIZE:
            raise cls.ERROR(
                f"{cls.LABEL} must be {cls.SIZE} bytes, got {len(data)} bytes"
            )
        return super().__new__(cls, data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hex()})"


class Block(_FixedBytes):
    """16-byte block, the unit of every cipher and GHASH operation."""

    SIZE = BLOCK_SIZE
    ERROR = InvalidBlockSize
    LABEL = "Block"

    @classmethod
    def from_int(cls, value: int) -> 'Block':
        """Build a block from a 128-bit integer (big-endian)."""
        return cls(value.to_bytes(BLOCK_SIZE, 'big'))

    def to_int(self) -> int:
        """Interpret the block as a big-endian 128-bit integer."""
        return int.from_bytes(self, 'big')

    def xor(self, other: BytesLike) -> 'Block':
        """XOR with another 16-byte value."""
        other = Block(other)
        return Block(bytes(a ^ b for a, b in zip(self, other)))


class Key(_FixedBytes):
    """256-bit AES key. Never printed in full."""

    SIZE = KEY_SIZE
    ERROR = InvalidKeySize
    LABEL = "Key"

    def __repr__(self) -> str:
        return "Key(<redacted>)"


class Nonce(_FixedBytes):
    """96-bit GCM nonce."""

    SIZE = NONCE_SIZE
    ERROR = InvalidNonceSize
    LABEL = "Nonce"


class Tag(_FixedBytes):
    """128-bit GCM authentication tag."""

    SIZE = TAG_SIZE
    ERROR = InvalidTagSize
    LABEL = "Tag"


def xor_bytes(a: BytesLike, b: BytesLike) -> bytes:
    """XOR two byte strings, truncated to the shorter one."""
    return bytes(x ^ y for x, y in zip(a, b))


def zeroize(buf: bytearray) -> None:
    """Overwrite a mutable buffer with zeros in place."""
    for i in range(len(buf)):
        buf[i] = 0
