# -*- coding: utf-8 -*-
"""
dleq.py  (Chaum-Pedersen discrete-log equality, Fiat-Shamir form)
-----------------------------------------------------------------
Statement:  gx = g^x  and  hx = h^x  for the same secret x.

  Prove :  r <- Z_p,  a1 = g^r,  a2 = h^r
           c = H(g, h, gx, hx, a1, a2),   z = r - c·x
  Verify:  a1 = g^z · gx^c,   a2 = h^z · hx^c,   c =? H(g, h, gx, hx, a1, a2)

Only (c, z) is transmitted; a1 and a2 are recomputed by the verifier.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any

from charm.toolbox.pairinggroup import PairingGroup

from pvgss.group import exp, hash_to_zr

DLEQ_TAG = "PVGSS/DLEQ/v1"


@dataclass(frozen=True)
class DLEQProof:
    c: int
    z: int


def _challenge(group: PairingGroup, g: Any, h: Any, gx: Any, hx: Any,
               a1: Any, a2: Any) -> int:
    return hash_to_zr(group, DLEQ_TAG, (g, h, gx, hx, a1, a2))


def prove(group: PairingGroup, g: Any, h: Any, x: int, gx: Any, hx: Any) -> DLEQProof:
    p = int(group.order())
    r = secrets.randbelow(p - 1) + 1
    a1 = exp(group, g, r)
    a2 = exp(group, h, r)
    c = _challenge(group, g, h, gx, hx, a1, a2)
    return DLEQProof(c=c, z=(r - c * x) % p)


def verify(group: PairingGroup, g: Any, h: Any, gx: Any, hx: Any, proof: DLEQProof) -> bool:
    a1 = exp(group, g, proof.z) * exp(group, gx, proof.c)
    a2 = exp(group, h, proof.z) * exp(group, hx, proof.c)
    return _challenge(group, g, h, gx, hx, a1, a2) == proof.c
