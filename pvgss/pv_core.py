# -*- coding: utf-8 -*-
"""
pv_core.py  (PVGSS core) — publicly verifiable generalized secret sharing
-------------------------------------------------------------------------
Roles:
  Participant : Setup / PreRecon
  Dealer      : Share
  Public      : Verify / KeyVrf / Recon

  Setup    : sk <- Z_p,  pk1 = g1^sk,  pk2 = g2^sk

  Share    : λ  = M·(s,  r_2, ..., r_d)        C_i  = pk1_i^{λ_i}
             λ' = M·(s', r'_2, ..., r'_d)      C'_i = pk1_i^{λ'_i}
             c  = H(C_1..C_n, C'_1..C'_n)
             ŝ  = s' - c·s,   ŝ_i = λ'_i - c·λ_i

  Verify   : C'_i =? C_i^c · pk1_i^{ŝ_i}                   for every row i
             Recon_I({ŝ_i}) =? ŝ                            for every quorum I

  PreRecon : D_i = C_i^{sk_i^{-1}} = g1^{λ_i},  with DLEQ(g1, pk1_i; D_i, C_i)
  KeyVrf   : check the DLEQ proof (or e(D_i, pk2_i) =? e(C_i, g2))
  Recon    : Π_{k} D_{I_k}^{w_k} = g1^s
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import CancelledError, Executor
from dataclasses import dataclass
from typing import (Any, Callable, Iterable, List, Mapping, Optional,
                    Sequence, Tuple, TypeVar, Union)

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, pair

from pvgss import dleq, lsss
from pvgss.errors import (DimensionError, KeyInverseError, KeyValidityError,
                          ProofVerificationError)
from pvgss.field import Matrix
from pvgss.group import exp, hash_to_zr
from pvgss.lsss import Quorum

logger = logging.getLogger(__name__)

DEFAULT_CURVE = os.environ.get("PVGSS_CURVE", "BN254")

CHALLENGE_TAG = "PVGSS/share-challenge/v1"

T = TypeVar("T")
R = TypeVar("R")


# ============================================================
# Parameters / keys / transcript types
# ============================================================

@dataclass
class PVGSSParams:
    curve: str
    group: PairingGroup
    g1: Any
    g2: Any
    order: int


@dataclass
class KeyPair:
    sk: int
    pk1: Any   # G1
    pk2: Any   # G2


@dataclass(frozen=True)
class Proof:
    cp: Tuple[Any, ...]       # C'_i  blinding commitments
    c: int                    # Fiat-Shamir challenge
    shat: int                 # ŝ
    shat_i: Tuple[int, ...]   # ŝ_i


@dataclass
class ShareResult:
    commitments: List[Any]    # C_i
    proof: Proof


@dataclass(frozen=True)
class PartialShare:
    value: Any                # D_i = g1^{λ_i}
    proof: dleq.DLEQProof


# ============================================================
# Row scheduling
# ============================================================

def _map_rows(fn: Callable[[T], R], items: Iterable[T],
              executor: Optional[Executor] = None,
              cancel: Optional[threading.Event] = None) -> List[R]:
    """Apply fn to every row, sequentially or on the caller's executor."""
    def run(item: T) -> R:
        if cancel is not None and cancel.is_set():
            raise CancelledError()
        return fn(item)

    if executor is None:
        return [run(item) for item in items]
    return list(executor.map(run, items))


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise CancelledError()


# ============================================================
# Setup
# ============================================================

def setup_params(curve: str = DEFAULT_CURVE) -> PVGSSParams:
    group = PairingGroup(curve)
    return PVGSSParams(
        curve=curve,
        group=group,
        g1=group.random(G1),
        g2=group.random(G2),
        order=int(group.order()),
    )


def setup(params: PVGSSParams) -> KeyPair:
    """PVGSSSetup: one participant keypair."""
    group = params.group
    sk = int(group.random(ZR)) % params.order
    while sk == 0:
        sk = int(group.random(ZR)) % params.order
    return KeyPair(sk=sk, pk1=exp(group, params.g1, sk), pk2=exp(group, params.g2, sk))


def setup_participants(params: PVGSSParams, n: int) -> List[KeyPair]:
    return [setup(params) for _ in range(n)]


# ============================================================
# Share
# ============================================================

def challenge(params: PVGSSParams, C: Sequence[Any], Cp: Sequence[Any]) -> int:
    """c = H(C_1, ..., C_n, C'_1, ..., C'_n)."""
    return hash_to_zr(params.group, CHALLENGE_TAG, list(C) + list(Cp))


def share(params: PVGSSParams, secret: Union[int, Any], matrix: Matrix,
          pks: Sequence[Any], executor: Optional[Executor] = None,
          cancel: Optional[threading.Event] = None) -> ShareResult:
    """PVGSSShare: encrypted shares C_i plus the consistency proof."""
    if len(matrix) != len(pks):
        raise DimensionError(
            f"matrix has {len(matrix)} rows but {len(pks)} public keys were given")
    group, p = params.group, params.order
    s = int(secret) % p

    lambdas = lsss.share(s, matrix, p)
    sp = int(group.random(ZR)) % p
    lambdas_p = lsss.share(sp, matrix, p)

    rows = range(len(pks))
    C = _map_rows(lambda i: exp(group, pks[i], lambdas[i]), rows, executor, cancel)
    Cp = _map_rows(lambda i: exp(group, pks[i], lambdas_p[i]), rows, executor, cancel)

    c = challenge(params, C, Cp)
    shat = (sp - c * s) % p
    shat_i = tuple((lambdas_p[i] - c * lambdas[i]) % p for i in rows)

    logger.debug("[Share] rows=%d cols=%d", len(matrix), len(matrix[0]))
    return ShareResult(commitments=C, proof=Proof(cp=tuple(Cp), c=c, shat=shat, shat_i=shat_i))


# ============================================================
# Verify
# ============================================================

def verify(params: PVGSSParams, C: Sequence[Any], proof: Proof, pks: Sequence[Any],
           quorums: Iterable[Quorum], executor: Optional[Executor] = None,
           cancel: Optional[threading.Event] = None) -> bool:
    """
    PVGSSVerify.  Raises ProofVerificationError on the first failed check,
    returns True when every row equation and every quorum agrees.
    """
    group, p = params.group, params.order
    quorums = list(quorums)
    n = len(C)
    if not (len(proof.cp) == len(proof.shat_i) == len(pks) == n):
        raise ProofVerificationError(
            f"proof length mismatch: C={n} C'={len(proof.cp)} "
            f"ŝ_i={len(proof.shat_i)} pk={len(pks)}")
    if not quorums:
        raise ProofVerificationError("no authorized row set supplied")

    if challenge(params, C, proof.cp) != proof.c:
        logger.info("[Verify] challenge mismatch  result=FAIL")
        raise ProofVerificationError("challenge does not match the commitments")

    def row_ok(i: int) -> bool:
        right = exp(group, C[i], proof.c) * exp(group, pks[i], proof.shat_i[i])
        return proof.cp[i] == right

    for i, ok in enumerate(_map_rows(row_ok, range(n), executor, cancel)):
        if not ok:
            logger.info("[Verify] row=%d  result=FAIL", i)
            raise ProofVerificationError(f"check nizk proof fails at row {i}")

    for q in quorums:
        _check_cancel(cancel)
        recovered = lsss.recon(q.inverse, proof.shat_i, q.rows, p)
        if recovered != proof.shat:
            logger.info("[Verify] quorum=%s  result=FAIL", list(q.rows))
            raise ProofVerificationError(
                f"reconstructed ŝ does not match for rows {list(q.rows)}")

    logger.info("[Verify] rows=%d quorums=%d  result=PASS", n, len(quorums))
    return True


# ============================================================
# PreRecon / KeyVrf
# ============================================================

def prerecon(params: PVGSSParams, C_i: Any, sk: int) -> PartialShare:
    """D_i = C_i^{sk^{-1}} together with DLEQ(g1, pk1 ; D_i, C_i)."""
    group, p = params.group, params.order
    try:
        sk_inv = pow(int(sk) % p, -1, p)
    except ValueError:
        raise KeyInverseError("no inverse for sk") from None

    value = exp(group, C_i, sk_inv)
    pk1 = exp(group, params.g1, sk)
    proof = dleq.prove(group, params.g1, value, int(sk) % p, pk1, C_i)
    return PartialShare(value=value, proof=proof)


def keyvrf(params: PVGSSParams, C_i: Any, partial: PartialShare, pk1: Any) -> bool:
    """Check that partial.value was stripped from C_i with the key behind pk1."""
    if not dleq.verify(params.group, params.g1, partial.value, pk1, C_i, partial.proof):
        logger.info("[KeyVrf] result=FAIL")
        raise KeyValidityError("partial decryption does not match the public key")
    return True


def keyvrf_pairing(params: PVGSSParams, C_i: Any, value: Any, pk2: Any) -> bool:
    """Proof-free variant: e(D_i, g2^sk) =? e(C_i, g2)."""
    if pair(value, pk2) != pair(C_i, params.g2):
        logger.info("[KeyVrf] pairing check  result=FAIL")
        raise KeyValidityError("pairing check on partial decryption fails")
    return True


def prerecon_all(params: PVGSSParams, C: Mapping[int, Any], keys: Mapping[int, KeyPair],
                 executor: Optional[Executor] = None,
                 cancel: Optional[threading.Event] = None) -> dict:
    """PreRecon for every row in `keys`; returns {row: PartialShare}."""
    rows = sorted(keys)
    out = _map_rows(lambda i: prerecon(params, C[i], keys[i].sk), rows, executor, cancel)
    return dict(zip(rows, out))


def keyvrf_all(params: PVGSSParams, C: Mapping[int, Any], partials: Mapping[int, PartialShare],
               pks: Mapping[int, Any], executor: Optional[Executor] = None,
               cancel: Optional[threading.Event] = None) -> bool:
    rows = sorted(partials)
    _map_rows(lambda i: keyvrf(params, C[i], partials[i], pks[i]), rows, executor, cancel)
    return True


# ============================================================
# Recon
# ============================================================

def recon(params: PVGSSParams, quorum: Quorum,
          partials: Union[Mapping[int, Any], Sequence[Any]]) -> Any:
    """PVGSSRecon: g1^s from the quorum's partial decryptions."""
    values = {}
    for r in quorum.rows:
        d = partials[r]
        values[r] = d.value if isinstance(d, PartialShare) else d
    return lsss.grp_recon(params.group, quorum.inverse, values, quorum.rows, params.order)
