"""
Integration tests for gcmvault.

Tests the complete AEAD against an independent implementation:
- Interoperability with the cryptography library's AESGCM
- Shared cipher instances under concurrent use
- Sealed message framing end to end
"""

import os
import pytest
from concurrent.futures import ThreadPoolExecutor
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from src.aead import (
    AES256GCM, AESGCMCipher, AUTHENTICATION_FAILURE, SealedMessage,
    generate_key, generate_nonce
)


TAG_SIZE = 16


class TestInteroperability:
    """Output is byte-for-byte compatible with cryptography's AESGCM."""

    @pytest.mark.parametrize("pt_len,aad_len", [
        (0, 0), (0, 13), (1, 0), (16, 16), (31, 7), (64, 20), (257, 100),
    ])
    def test_seal_matches_library(self, pt_len, aad_len):
        key = os.urandom(32)
        nonce = os.urandom(12)
        plaintext = os.urandom(pt_len)
        aad = os.urandom(aad_len)

        ciphertext, tag = AES256GCM(key).seal(nonce, plaintext, aad)
        expected = AESGCM(key).encrypt(nonce, plaintext, aad)

        assert ciphertext + tag == expected

    def test_library_output_opens(self):
        """Ciphertext from the library decrypts here."""
        key = os.urandom(32)
        nonce = os.urandom(12)
        blob = AESGCM(key).encrypt(nonce, b"from the library", b"hdr")
        ciphertext, tag = blob[:-TAG_SIZE], blob[-TAG_SIZE:]
        assert AES256GCM(key).open(nonce, ciphertext, tag, b"hdr") == b"from the library"

    def test_our_output_opens_in_library(self):
        key = os.urandom(32)
        cipher = AESGCMCipher(key)
        nonce, ciphertext, tag = cipher.encrypt(b"to the library", b"hdr")
        assert AESGCM(key).decrypt(nonce, ciphertext + tag, b"hdr") == b"to the library"


class TestConcurrentUse:
    """One instance shared by many threads, each with its own nonce."""

    def test_parallel_seal_open(self):
        gcm = AES256GCM(generate_key())
        messages = [os.urandom(n) for n in range(0, 80, 5)]

        def roundtrip(plaintext):
            nonce = generate_nonce()
            ciphertext, tag = gcm.seal(nonce, plaintext, b"thread")
            return gcm.open(nonce, ciphertext, tag, b"thread") == plaintext

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(roundtrip, messages))

        assert all(results)

    def test_parallel_nonce_tracking(self):
        """Nonces stay unique across threads."""
        cipher = AESGCMCipher(generate_key())

        with ThreadPoolExecutor(max_workers=4) as pool:
            nonces = list(pool.map(lambda _: cipher.encrypt(b"x")[0], range(40)))

        assert len(set(nonces)) == 40
        assert cipher.nonces_used == 40


class TestMessageFlow:
    """Sender seals, message travels as bytes, receiver opens."""

    def test_sender_receiver(self):
        key = generate_key()
        sender = AES256GCM(key)
        receiver = AES256GCM(key)

        wire = sender.seal_message(generate_nonce(), b"meet at noon", b"alice->bob").to_bytes()
        message = SealedMessage.from_bytes(wire)

        assert receiver.open_message(message, b"alice->bob") == b"meet at noon"

    def test_tampered_wire_rejected(self):
        key = generate_key()
        wire = bytearray(AES256GCM(key).seal_message(generate_nonce(), b"payload").to_bytes())
        wire[14] ^= 0x80  # inside the ciphertext
        message = SealedMessage.from_bytes(bytes(wire))
        assert AES256GCM(key).open_message(message) is AUTHENTICATION_FAILURE
