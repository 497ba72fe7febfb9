"""
Security tests for gcmvault.

Tests specifically for security-related scenarios:
- Single-bit tampering of ciphertext, tag, AAD and nonce
- No plaintext released for unauthenticated input
- Constant-time tag comparison
- Key material kept out of logs and reprs
"""

import logging
import os
import pytest
from unittest.mock import patch

from src.aead.aes_gcm import AES256GCM, AUTHENTICATION_FAILURE, generate_key, generate_nonce
from src.core_crypto.ctr_mode import CounterMode


def flip_bit(data: bytes, bit: int) -> bytes:
    out = bytearray(data)
    out[bit // 8] ^= 1 << (bit % 8)
    return bytes(out)


@pytest.fixture
def sealed():
    """A sealed message with non-trivial plaintext and AAD."""
    key = generate_key()
    gcm = AES256GCM(key)
    nonce = generate_nonce()
    plaintext = b"Transfer 100 to account 42, ref 7"
    aad = b"msg-id:1234"
    ciphertext, tag = gcm.seal(nonce, plaintext, aad)
    return gcm, nonce, plaintext, aad, ciphertext, tag


class TestTamperDetection:
    """Flipping any single bit must yield AUTHENTICATION_FAILURE."""

    def test_every_ciphertext_bit(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        for bit in range(len(ciphertext) * 8):
            tampered = flip_bit(ciphertext, bit)
            assert gcm.open(nonce, tampered, tag, aad) is AUTHENTICATION_FAILURE

    def test_every_tag_bit(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        for bit in range(128):
            assert gcm.open(nonce, ciphertext, flip_bit(tag, bit), aad) is AUTHENTICATION_FAILURE

    def test_every_aad_bit(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        for bit in range(len(aad) * 8):
            assert gcm.open(nonce, ciphertext, tag, flip_bit(aad, bit)) is AUTHENTICATION_FAILURE

    def test_nonce_bit(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        for bit in (0, 47, 95):
            assert gcm.open(flip_bit(nonce, bit), ciphertext, tag, aad) is AUTHENTICATION_FAILURE

    def test_truncated_ciphertext(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        assert gcm.open(nonce, ciphertext[:-1], tag, aad) is AUTHENTICATION_FAILURE

    def test_extended_ciphertext(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        assert gcm.open(nonce, ciphertext + b"\x00", tag, aad) is AUTHENTICATION_FAILURE

    def test_aad_moved_into_ciphertext(self, sealed):
        """Dropping AAD is detected even with zero-padding equivalence."""
        gcm, nonce, _, aad, ciphertext, tag = sealed
        assert gcm.open(nonce, ciphertext, tag, b"") is AUTHENTICATION_FAILURE
        assert gcm.open(nonce, ciphertext, tag, aad + b"\x00") is AUTHENTICATION_FAILURE

    def test_all_zero_tag(self, sealed):
        gcm, nonce, _, aad, ciphertext, _ = sealed
        assert gcm.open(nonce, ciphertext, bytes(16), aad) is AUTHENTICATION_FAILURE


class TestNoPlaintextRelease:
    """Tag check precedes decryption."""

    def test_counter_mode_not_run_on_failure(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        with patch.object(CounterMode, 'transform', wraps=gcm._ctr.transform) as transform:
            result = gcm.open(nonce, ciphertext, flip_bit(tag, 0), aad)
        assert result is AUTHENTICATION_FAILURE
        transform.assert_not_called()

    def test_counter_mode_run_once_on_success(self, sealed):
        gcm, nonce, plaintext, aad, ciphertext, tag = sealed
        with patch.object(CounterMode, 'transform', wraps=gcm._ctr.transform) as transform:
            result = gcm.open(nonce, ciphertext, tag, aad)
        assert result == plaintext
        assert transform.call_count == 1

    def test_constant_time_compare_used(self, sealed):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        with patch('src.aead.aes_gcm.hmac.compare_digest', return_value=False) as compare:
            assert gcm.open(nonce, ciphertext, tag, aad) is AUTHENTICATION_FAILURE
        compare.assert_called_once()


class TestSecretHygiene:
    """Key material never leaks through logs or reprs."""

    def test_failure_logged_without_secrets(self, sealed, caplog):
        gcm, nonce, _, aad, ciphertext, tag = sealed
        with caplog.at_level(logging.DEBUG):
            gcm.open(nonce, ciphertext, flip_bit(tag, 3), aad)
        assert "authentication failed" in caplog.text
        assert tag.hex() not in caplog.text
        assert ciphertext.hex() not in caplog.text

    def test_key_not_in_logs(self, caplog):
        key = os.urandom(32)
        with caplog.at_level(logging.DEBUG):
            gcm = AES256GCM(key)
            gcm.seal(generate_nonce(), b"data", b"aad")
        assert key.hex() not in caplog.text

    def test_repr_has_no_key(self):
        key = os.urandom(32)
        gcm = AES256GCM(key)
        assert key.hex() not in repr(gcm)
        assert key.hex() not in repr(gcm._core)

    def test_wipe_zeroes_subkey(self):
        gcm = AES256GCM(os.urandom(32))
        gcm.wipe()
        assert gcm._h == bytearray(16)
