# Core Cryptography Module
"""
Hashing primitives for the chain simulator:
- Canonical block field encoding
- SHA-256 block digests
- Leading-zero difficulty checks
"""
