# gcmvault Test Suite
"""
Test suite including:
- Unit tests (core crypto, AEAD facade)
- Integration tests (interop with the cryptography library, threads)
- Security tests (tampering, invalid inputs)

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
