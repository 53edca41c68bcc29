# -*- coding: utf-8 -*-
"""
envelope.py  (AES-GCM payload locked under a shared group element)
------------------------------------------------------------------
The dealer seals a payload with a key derived from g1^s; any quorum that
reconstructs g1^s derives the same key and opens it.
"""

from __future__ import annotations

import hashlib
import os
from typing import Any, Dict, Optional

from charm.toolbox.pairinggroup import PairingGroup
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from pvgss.group import b64d, b64e


def derive_key(group: PairingGroup, element: Any) -> bytes:
    """Derive a 32-byte AES key from a group element via SHA-256."""
    return hashlib.sha256(group.serialize(element)).digest()


def aes_gcm_encrypt(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> Dict[str, str]:
    nonce = os.urandom(12)
    ct = AESGCM(key).encrypt(nonce, plaintext, aad)
    return {"nonce": b64e(nonce), "ct": b64e(ct)}


def aes_gcm_decrypt(key: bytes, enc: Dict[str, str], aad: Optional[bytes] = None) -> bytes:
    return AESGCM(key).decrypt(b64d(enc["nonce"]), b64d(enc["ct"]), aad)
