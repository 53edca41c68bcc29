# -*- coding: utf-8 -*-
"""
group.py  (Charm pairing-group helpers)
---------------------------------------
Scalars travel through the package as Python ints reduced mod the group
order; they are lifted into ZR only at the exponent.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Any, Iterable

from charm.toolbox.pairinggroup import PairingGroup, ZR


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"))


def zr(group: PairingGroup, k: int) -> Any:
    """int -> ZR element (k is reduced mod the order first)."""
    return group.init(ZR, int(k) % int(group.order()))


def exp(group: PairingGroup, elem: Any, k: int) -> Any:
    return elem ** zr(group, k)


def product(elements: Iterable[Any]) -> Any:
    """Group product of a non-empty sequence of elements."""
    acc = None
    for e in elements:
        acc = e if acc is None else acc * e
    if acc is None:
        raise ValueError("product of an empty sequence")
    return acc


def hash_to_zr(group: PairingGroup, tag: str, elements: Iterable[Any]) -> int:
    """
    Domain-separated challenge: SHA-256 over the tag followed by the
    canonical serialization of every element, reduced mod the order.
    Each element is length-prefixed so concatenations cannot collide.
    """
    h = hashlib.sha256()
    h.update(tag.encode("utf-8"))
    for e in elements:
        data = group.serialize(e)
        h.update(len(data).to_bytes(4, "big"))
        h.update(data)
    return int.from_bytes(h.digest(), "big") % int(group.order())
