"""
AES-256 Block Transform

The single-block forward and inverse AES-256 transforms built on the
key schedule from aes_key_schedule.py.

State layout: a 16-byte bytearray in column-major order, i.e. the byte
at row r, column c lives at index r + 4*c (the same order as the input
block).

Forward transform (14 rounds):
    round 0:      AddRoundKey
    rounds 1-13:  SubBytes, ShiftRows, MixColumns, AddRoundKey
    round 14:     SubBytes, ShiftRows, AddRoundKey

The inverse applies the exact inverses in reverse order using INV_S_BOX
and the {14, 11, 13, 9} MixColumns matrix.
"""

from .errors import InvalidBlockSize
from .fixed_bytes import BLOCK_SIZE, zeroize
from .aes_key_schedule import S_BOX, INV_S_BOX, NUM_ROUNDS, AES256KeySchedule


# ============================================================================
# GF(2^8) arithmetic
# ============================================================================

def xtime(a: int) -> int:
    """Multiply by x (i.e. 2) in GF(2^8) modulo x^8 + x^4 + x^3 + x + 1."""
    a <<= 1
    if a & 0x100:
        a ^= 0x11b
    return a


def gf256_mul(a: int, b: int) -> int:
    """Multiply two bytes in GF(2^8)."""
    result = 0
    while b:
        if b & 1:
            result ^= a
        a = xtime(a)
        b >>= 1
    return result


# Multiplication tables for the MixColumns coefficients
MUL2 = tuple(gf256_mul(i, 2) for i in range(256))
MUL3 = tuple(gf256_mul(i, 3) for i in range(256))
MUL9 = tuple(gf256_mul(i, 9) for i in range(256))
MUL11 = tuple(gf256_mul(i, 11) for i in range(256))
MUL13 = tuple(gf256_mul(i, 13) for i in range(256))
MUL14 = tuple(gf256_mul(i, 14) for i in range(256))


# ============================================================================
# Round operations (in place on a 16-byte state)
# ============================================================================

def sub_bytes(state: bytearray) -> None:
    for i in range(BLOCK_SIZE):
        state[i] = S_BOX[state[i]]


def inv_sub_bytes(state: bytearray) -> None:
    for i in range(BLOCK_SIZE):
        state[i] = INV_S_BOX[state[i]]


def shift_rows(state: bytearray) -> None:
    """Rotate row r left by r positions."""
    old = bytes(state)
    for r in range(1, 4):
        for c in range(4):
            state[r + 4 * c] = old[r + 4 * ((c + r) % 4)]


def inv_shift_rows(state: bytearray) -> None:
    """Rotate row r right by r positions."""
    old = bytes(state)
    for r in range(1, 4):
        for c in range(4):
            state[r + 4 * c] = old[r + 4 * ((c - r) % 4)]


def mix_columns(state: bytearray) -> None:
    """Multiply each column by {2,3,1,1; 1,2,3,1; 1,1,2,3; 3,1,1,2}."""
    for c in range(0, BLOCK_SIZE, 4):
        a0, a1, a2, a3 = state[c], state[c + 1], state[c + 2], state[c + 3]
        state[c] = MUL2[a0] ^ MUL3[a1] ^ a2 ^ a3
        state[c + 1] = a0 ^ MUL2[a1] ^ MUL3[a2] ^ a3
        state[c + 2] = a0 ^ a1 ^ MUL2[a2] ^ MUL3[a3]
        state[c + 3] = MUL3[a0] ^ a1 ^ a2 ^ MUL2[a3]


def inv_mix_columns(state: bytearray) -> None:
    """Multiply each column by {14,11,13,9; 9,14,11,13; 13,9,14,11; 11,13,9,14}."""
    for c in range(0, BLOCK_SIZE, 4):
        a0, a1, a2, a3 = state[c], state[c + 1], state[c + 2], state[c + 3]
        state[c] = MUL14[a0] ^ MUL11[a1] ^ MUL13[a2] ^ MUL9[a3]
        state[c + 1] = MUL9[a0] ^ MUL14[a1] ^ MUL11[a2] ^ MUL13[a3]
        state[c + 2] = MUL13[a0] ^ MUL9[a1] ^ MUL14[a2] ^ MUL11[a3]
        state[c + 3] = MUL11[a0] ^ MUL13[a1] ^ MUL9[a2] ^ MUL14[a3]


def add_round_key(state: bytearray, round_key: bytes) -> None:
    for i in range(BLOCK_SIZE):
        state[i] ^= round_key[i]


# ============================================================================
# Block cipher
# ============================================================================

class AES256:
    """
    AES-256 block cipher core.

    The key schedule is derived once in the constructor and never
    mutated afterwards; encrypt_block/decrypt_block are pure functions
    of (schedule, block) and safe to call from several threads.

    Example:
        >>> aes = AES256(bytes(range(32)))
        >>> aes.encrypt_block(bytes.fromhex("00112233445566778899aabbccddeeff")).hex()
        '8ea2b7ca516745bfeafc49904b496089'
    """

    def __init__(self, key: bytes):
        """
        Args:
            key: 32-byte encryption key

        Raises:
            InvalidKeySize: If key is not 32 bytes
        """
        self._schedule = AES256KeySchedule(key)

    def encrypt_block(self, block: bytes) -> bytes:
        """
        Encrypt exactly one 16-byte block.

        Raises:
            InvalidBlockSize: If block is not 16 bytes
        """
        round_keys = self._schedule.raw_round_keys()
        state = self._load(block)

        add_round_key(state, round_keys[0])
        for rnd in range(1, NUM_ROUNDS):
            sub_bytes(state)
            shift_rows(state)
            mix_columns(state)
            add_round_key(state, round_keys[rnd])
        sub_bytes(state)
        shift_rows(state)
        add_round_key(state, round_keys[NUM_ROUNDS])

        return self._release(state)

    def decrypt_block(self, block: bytes) -> bytes:
        """
        Decrypt exactly one 16-byte block.

        Raises:
            InvalidBlockSize: If block is not 16 bytes
        """
        round_keys = self._schedule.raw_round_keys()
        state = self._load(block)

        add_round_key(state, round_keys[NUM_ROUNDS])
        inv_shift_rows(state)
        inv_sub_bytes(state)
        for rnd in range(NUM_ROUNDS - 1, 0, -1):
            add_round_key(state, round_keys[rnd])
            inv_mix_columns(state)
            inv_shift_rows(state)
            inv_sub_bytes(state)
        add_round_key(state, round_keys[0])

        return self._release(state)

    def wipe(self) -> None:
        """Zero the round keys; further calls raise RuntimeError."""
        self._schedule.wipe()

    @staticmethod
    def _load(block: bytes) -> bytearray:
        if len(block) != BLOCK_SIZE:
            raise InvalidBlockSize(f"Block must be {BLOCK_SIZE} bytes, got {len(block)} bytes")
        return bytearray(block)

    @staticmethod
    def _release(state: bytearray) -> bytes:
        out = bytes(state)
        zeroize(state)
        return out

    def __repr__(self) -> str:
        return f"AES256({self._schedule!r})"
