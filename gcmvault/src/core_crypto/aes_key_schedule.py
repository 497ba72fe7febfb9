"""
AES-256 Key Expansion (Rijndael Key Schedule)

Expands a 256-bit key into 15 round keys (initial whitening + 14 rounds)
for the AES-256 block transform in aes_block.py.

Components:
- S-box / inverse S-box (Rijndael substitution tables)
- RotWord: rotate word left by 1 byte
- SubWord: S-box substitution on each byte of a word
- Rcon: round constants
- AES256KeySchedule: the round-key schedule owned by one cipher instance

Lookup tables are tuples so they cannot be mutated at runtime.
"""

import logging
from typing import List

from .errors import InvalidKeySize
from .fixed_bytes import KEY_SIZE, BLOCK_SIZE, zeroize


logger = logging.getLogger(__name__)


# AES-256 parameters
NK = 8                              # 32-bit words in the key
NB = 4                              # 32-bit words in a block
NUM_ROUNDS = 14
TOTAL_WORDS = NB * (NUM_ROUNDS + 1)  # 60


# Rijndael S-box
S_BOX = (
    0x63, 0x7c, 0x77, 0x7b, 0xf2, 0x6b, 0x6f, 0xc5, 0x30, 0x01, 0x67, 0x2b, 0xfe, 0xd7, 0xab, 0x76,
    0xca, 0x82, 0xc9, 0x7d, 0xfa, 0x59, 0x47, 0xf0, 0xad, 0xd4, 0xa2, 0xaf, 0x9c, 0xa4, 0x72, 0xc0,
    0xb7, 0xfd, 0x93, 0x26, 0x36, 0x3f, 0xf7, 0xcc, 0x34, 0xa5, 0xe5, 0xf1, 0x71, 0xd8, 0x31, 0x15,
    0x04, 0xc7, 0x23, 0xc3, 0x18, 0x96, 0x05, 0x9a, 0x07, 0x12, 0x80, 0xe2, 0xeb, 0x27, 0xb2, 0x75,
    0x09, 0x83, 0x2c, 0x1a, 0x1b, 0x6e, 0x5a, 0xa0, 0x52, 0x3b, 0xd6, 0xb3, 0x29, 0xe3, 0x2f, 0x84,
    0x53, 0xd1, 0x00, 0xed, 0x20, 0xfc, 0xb1, 0x5b, 0x6a, 0xcb, 0xbe, 0x39, 0x4a, 0x4c, 0x58, 0xcf,
    0xd0, 0xef, 0xaa, 0xfb, 0x43, 0x4d, 0x33, 0x85, 0x45, 0xf9, 0x02, 0x7f, 0x50, 0x3c, 0x9f, 0xa8,
    0x51, 0xa3, 0x40, 0x8f, 0x92, 0x9d, 0x38, 0xf5, 0xbc, 0xb6, 0xda, 0x21, 0x10, 0xff, 0xf3, 0xd2,
    0xcd, 0x0c, 0x13, 0xec, 0x5f, 0x97, 0x44, 0x17, 0xc4, 0xa7, 0x7e, 0x3d, 0x64, 0x5d, 0x19, 0x73,
    0x60, 0x81, 0x4f, 0xdc, 0x22, 0x2a, 0x90, 0x88, 0x46, 0xee, 0xb8, 0x14, 0xde, 0x5e, 0x0b, 0xdb,
    0xe0, 0x32, 0x3a, 0x0a, 0x49, 0x06, 0x24, 0x5c, 0xc2, 0xd3, 0xac, 0x62, 0x91, 0x95, 0xe4, 0x79,
    0xe7, 0xc8, 0x37, 0x6d, 0x8d, 0xd5, 0x4e, 0xa9, 0x6c, 0x56, 0xf4, 0xea, 0x65, 0x7a, 0xae, 0x08,
    0xba, 0x78, 0x25, 0x2e, 0x1c, 0xa6, 0xb4, 0xc6, 0xe8, 0xdd, 0x74, 0x1f, 0x4b, 0xbd, 0x8b, 0x8a,
    0x70, 0x3e, 0xb5, 0x66, 0x48, 0x03, 0xf6, 0x0e, 0x61, 0x35, 0x57, 0xb9, 0x86, 0xc1, 0x1d, 0x9e,
    0xe1, 0xf8, 0x98, 0x11, 0x69, 0xd9, 0x8e, 0x94, 0x9b, 0x1e, 0x87, 0xe9, 0xce, 0x55, 0x28, 0xdf,
    0x8c, 0xa1, 0x89, 0x0d, 0xbf, 0xe6, 0x42, 0x68, 0x41, 0x99, 0x2d, 0x0f, 0xb0, 0x54, 0xbb, 0x16,
)

# Inverse S-box, used by the inverse block transform
INV_S_BOX = (
    0x52, 0x09, 0x6a, 0xd5, 0x30, 0x36, 0xa5, 0x38, 0xbf, 0x40, 0xa3, 0x9e, 0x81, 0xf3, 0xd7, 0xfb,
    0x7c, 0xe3, 0x39, 0x82, 0x9b, 0x2f, 0xff, 0x87, 0x34, 0x8e, 0x43, 0x44, 0xc4, 0xde, 0xe9, 0xcb,
    0x54, 0x7b, 0x94, 0x32, 0xa6, 0xc2, 0x23, 0x3d, 0xee, 0x4c, 0x95, 0x0b, 0x42, 0xfa, 0xc3, 0x4e,
    0x08, 0x2e, 0xa1, 0x66, 0x28, 0xd9, 0x24, 0xb2, 0x76, 0x5b, 0xa2, 0x49, 0x6d, 0x8b, 0xd1, 0x25,
    0x72, 0xf8, 0xf6, 0x64, 0x86, 0x68, 0x98, 0x16, 0xd4, 0xa4, 0x5c, 0xcc, 0x5d, 0x65, 0xb6, 0x92,
    0x6c, 0x70, 0x48, 0x50, 0xfd, 0xed, 0xb9, 0xda, 0x5e, 0x15, 0x46, 0x57, 0xa7, 0x8d, 0x9d, 0x84,
    0x90, 0xd8, 0xab, 0x00, 0x8c, 0xbc, 0xd3, 0x0a, 0xf7, 0xe4, 0x58, 0x05, 0xb8, 0xb3, 0x45, 0x06,
    0xd0, 0x2c, 0x1e, 0x8f, 0xca, 0x3f, 0x0f, 0x02, 0xc1, 0xaf, 0xbd, 0x03, 0x01, 0x13, 0x8a, 0x6b,
    0x3a, 0x91, 0x11, 0x41, 0x4f, 0x67, 0xdc, 0xea, 0x97, 0xf2, 0xcf, 0xce, 0xf0, 0xb4, 0xe6, 0x73,
    0x96, 0xac, 0x74, 0x22, 0xe7, 0xad, 0x35, 0x85, 0xe2, 0xf9, 0x37, 0xe8, 0x1c, 0x75, 0xdf, 0x6e,
    0x47, 0xf1, 0x1a, 0x71, 0x1d, 0x29, 0xc5, 0x89, 0x6f, 0xb7, 0x62, 0x0e, 0xaa, 0x18, 0xbe, 0x1b,
    0xfc, 0x56, 0x3e, 0x4b, 0xc6, 0xd2, 0x79, 0x20, 0x9a, 0xdb, 0xc0, 0xfe, 0x78, 0xcd, 0x5a, 0xf4,
    0x1f, 0xdd, 0xa8, 0x33, 0x88, 0x07, 0xc7, 0x31, 0xb1, 0x12, 0x10, 0x59, 0x27, 0x80, 0xec, 0x5f,
    0x60, 0x51, 0x7f, 0xa9, 0x19, 0xb5, 0x4a, 0x0d, 0x2d, 0xe5, 0x7a, 0x9f, 0x93, 0xc9, 0x9c, 0xef,
    0xa0, 0xe0, 0x3b, 0x4d, 0xae, 0x2a, 0xf5, 0xb0, 0xc8, 0xeb, 0xbb, 0x3c, 0x83, 0x53, 0x99, 0x61,
    0x17, 0x2b, 0x04, 0x7e, 0xba, 0x77, 0xd6, 0x26, 0xe1, 0x69, 0x14, 0x63, 0x55, 0x21, 0x0c, 0x7d,
)

# Round constants: RCON[i] = x^(i-1) in GF(2^8). AES-256 only reaches RCON[7].
RCON = (0x00, 0x01, 0x02, 0x04, 0x08, 0x10, 0x20, 0x40)


def sub_word(word: List[int]) -> List[int]:
    """Apply the S-box to each byte of a 4-byte word."""
    return [S_BOX[b] for b in word]


def rot_word(word: List[int]) -> List[int]:
    """
    Rotate a 4-byte word left by one byte.
    [a, b, c, d] -> [b, c, d, a]
    """
    return word[1:] + word[:1]


def aes256_key_expansion(key: bytes) -> List[bytes]:
    """
    Expand a 256-bit key into 15 round keys.

    Every NK words the previous word goes through RotWord, SubWord and
    the round constant; halfway through each 8-word group (i % 8 == 4)
    AES-256 applies one extra SubWord.

    Args:
        key: 32-byte encryption key

    Returns:
        List of 15 round keys, 16 bytes each

    Raises:
        InvalidKeySize: If key is not 32 bytes

    Example:
        >>> round_keys = aes256_key_expansion(bytes(range(32)))
        >>> len(round_keys), len(round_keys[0])
        (15, 16)
    """
    if len(key) != KEY_SIZE:
        raise InvalidKeySize(f"AES-256 requires 32-byte key, got {len(key)} bytes")

    w = [list(key[i:i + 4]) for i in range(0, KEY_SIZE, 4)]

    for i in range(NK, TOTAL_WORDS):
        temp = w[i - 1]
        if i % NK == 0:
            temp = sub_word(rot_word(temp))
            temp[0] ^= RCON[i // NK]
        elif i % NK == 4:
            temp = sub_word(temp)
        w.append([a ^ b for a, b in zip(w[i - NK], temp)])

    round_keys = []
    for i in range(0, TOTAL_WORDS, NB):
        round_keys.append(bytes(b for word in w[i:i + NB] for b in word))

    # Drop the word lists before returning
    for word in w:
        word[:] = [0, 0, 0, 0]

    return round_keys


class AES256KeySchedule:
    """
    Round-key schedule owned by a single cipher instance.

    Computed once at construction and read-only afterwards, so it can be
    shared across threads. wipe() zeroes the stored round keys.

    Example:
        >>> schedule = AES256KeySchedule(key)
        >>> schedule.get_round_key(0) == key[:16]
        True
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise InvalidKeySize(f"AES-256 requires 32-byte key, got {len(key)} bytes")

        self._round_keys = [bytearray(rk) for rk in aes256_key_expansion(bytes(key))]
        self._wiped = False
        logger.debug("AES-256 key schedule derived (%d round keys)", len(self._round_keys))

    @property
    def round_keys(self) -> List[bytes]:
        """Copy of the 15 round keys (16 bytes each)."""
        self._check_alive()
        return [bytes(rk) for rk in self._round_keys]

    @property
    def num_rounds(self) -> int:
        """Number of AES rounds (14 for AES-256)."""
        return NUM_ROUNDS

    @property
    def wiped(self) -> bool:
        return self._wiped

    def get_round_key(self, round_num: int) -> bytes:
        """
        Get the round key for a specific round.

        Args:
            round_num: Round number (0-14)

        Returns:
            16-byte round key
        """
        self._check_alive()
        if round_num < 0 or round_num > NUM_ROUNDS:
            raise IndexError(f"Round number must be 0-{NUM_ROUNDS}, got {round_num}")
        return bytes(self._round_keys[round_num])

    def raw_round_keys(self) -> List[bytearray]:
        """Internal view of the round keys for the block transform; do not mutate."""
        self._check_alive()
        return self._round_keys

    def wipe(self) -> None:
        """Zero every round key. The schedule is unusable afterwards."""
        for rk in self._round_keys:
            zeroize(rk)
        self._wiped = True

    def _check_alive(self) -> None:
        if self._wiped:
            raise RuntimeError("Key schedule has been wiped")

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else f"{len(self._round_keys)} x {BLOCK_SIZE} bytes"
        return f"AES256KeySchedule({state})"
