# Core Cryptography Module
"""
From-scratch building blocks for AES-256-GCM:
- AES-256 key schedule and block transform
- GF(2^128) multiplication
- GHASH authenticator
- GCM counter mode
- Fixed-size byte types and error classes
"""
