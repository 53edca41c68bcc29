# -*- coding: utf-8 -*-
"""
lsss.py  (access tree -> LSSS matrix, sharing and reconstruction)
-----------------------------------------------------------------
Compiler (Benaloh-Leichter style substitution):

  M = [[1]],  L = [root]
  while some entry of L is a gate:
      z      = first gate in L,  t-of-n
      rows before / after z  -> zero-padded by (t-1) columns
      row z replaced by n rows:  M_z || (k, k^2, ..., k^(t-1))   k = 1..n
      L[z]   replaced by the gate's children

Sharing:         λ = M · (s, r_2, ..., r_d)
Reconstruction:  w = e1^T · M_{I,J}^{-1},   s = Σ_k w_k λ_{I_k}
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from charm.toolbox.pairinggroup import PairingGroup

from pvgss.access_tree import AccessTree
from pvgss.errors import DimensionError, SingularMatrixError
from pvgss.field import (Matrix, gauss_jordan_inverse, multiply_matrix, rank,
                         solve, transpose)
from pvgss.group import exp, product

Shares = Union[Sequence[Any], Mapping[int, Any]]


# ============================================================
# Compiler
# ============================================================

def convert(tree: AccessTree, p: int) -> Matrix:
    """Compile an access tree into its LSSS matrix (rows in leaf order)."""
    M: Matrix = [[1]]
    L: List[int] = [tree.root]

    while True:
        z = next((i for i, idx in enumerate(L) if not tree.slot(idx).is_leaf), None)
        if z is None:
            return M

        gate = tree.slot(L[z])
        t = gate.threshold
        pad = [0] * (t - 1)

        expanded: Matrix = [row + pad for row in M[:z]]
        for k in range(1, len(gate.children) + 1):
            expanded.append(M[z] + [pow(k, e, p) for e in range(1, t)])
        expanded.extend(row + pad for row in M[z + 1:])

        M = expanded
        L = L[:z] + list(gate.children) + L[z + 1:]


# ============================================================
# Sharing
# ============================================================

def _share_vector(secret: int, cols: int, p: int) -> List[List[int]]:
    v = [int(secret) % p] + [secrets.randbelow(p) for _ in range(cols - 1)]
    return [[x] for x in v]


def share(secret: int, matrix: Matrix, p: int) -> List[int]:
    """λ_i = <M_i, (secret, r_2, ..., r_d)>, fresh r_j for every call."""
    if not matrix or not matrix[0]:
        raise DimensionError("matrix is empty")
    lambdas = multiply_matrix(matrix, _share_vector(secret, len(matrix[0]), p), p)
    return [row[0] for row in lambdas]


def grp_share(group: PairingGroup, element: Any, matrix: Matrix, p: int) -> List[Any]:
    """Share a group element S as S^{λ_i}, where λ shares the exponent 1."""
    return [exp(group, element, lam) for lam in share(1, matrix, p)]


# ============================================================
# Reconstruction
# ============================================================

def inverse_submatrix(matrix: Matrix, rows: Sequence[int], p: int) -> Matrix:
    """
    Inverse of the square block M_{I,J} used for reconstruction.

    I are the selected rows.  J is a basis of |I| independent columns of M_I
    taken greedily from the left, always starting with column 0, so that
    e1^T · M_{I,J}^{-1} is the coefficient vector w.  Columns outside J
    must then be annihilated by w, otherwise I does not span the target
    vector and the set is rejected.
    """
    if not rows:
        raise SingularMatrixError("empty row set")
    if any(r < 0 or r >= len(matrix) for r in rows):
        raise DimensionError(f"row index out of range in {list(rows)}")
    if len(set(rows)) != len(rows):
        raise SingularMatrixError(f"duplicate rows in {list(rows)}")

    sub = [list(matrix[r]) for r in rows]
    cols = transpose(sub)
    if all(x % p == 0 for x in cols[0]):
        raise SingularMatrixError("row set has no component on the secret column")

    chosen = [0]
    basis = [cols[0]]
    for j in range(1, len(cols)):
        if len(chosen) == len(rows):
            break
        if rank(basis + [cols[j]], p) > len(basis):
            chosen.append(j)
            basis.append(cols[j])
    if len(chosen) < len(rows):
        raise SingularMatrixError(
            f"rows {list(rows)} are linearly dependent; use a minimal quorum")

    block = [[row[j] for j in chosen] for row in sub]
    inverse = gauss_jordan_inverse(block, p)

    w = _first_row(inverse, p)
    for j in range(len(cols)):
        if j in chosen:
            continue
        if sum(wk * x for wk, x in zip(w, cols[j])) % p != 0:
            raise SingularMatrixError(
                f"rows {list(rows)} do not span the target vector")
    return inverse


@dataclass(frozen=True)
class Quorum:
    """An authorized row set with its reconstruction inverse precomputed."""
    rows: Tuple[int, ...]
    inverse: Matrix

    @classmethod
    def prepare(cls, matrix: Matrix, rows: Sequence[int], p: int) -> "Quorum":
        rows = tuple(rows)
        return cls(rows=rows, inverse=inverse_submatrix(matrix, rows, p))


def _first_row(inverse: Matrix, p: int) -> List[int]:
    e1 = [[1] + [0] * (len(inverse) - 1)]
    return multiply_matrix(e1, inverse, p)[0]


def _coefficients(inverse: Matrix, rows: Sequence[int], p: int) -> List[int]:
    if not rows:
        raise SingularMatrixError("empty row set")
    if len(inverse) != len(rows) or any(len(r) != len(rows) for r in inverse):
        raise DimensionError(
            f"inverse is not {len(rows)}x{len(rows)} for rows {list(rows)}")
    return _first_row(inverse, p)


def recon(inverse: Matrix, shares: Shares, rows: Sequence[int], p: int) -> int:
    """s = Σ_k w_k · shares[rows[k]]  (shares indexed by global row)."""
    w = _coefficients(inverse, rows, p)
    return sum(wk * int(shares[r]) for wk, r in zip(w, rows)) % p


def grp_recon(group: PairingGroup, inverse: Matrix, shares: Shares,
              rows: Sequence[int], p: int) -> Any:
    """S = Π_k shares[rows[k]]^{w_k}."""
    w = _coefficients(inverse, rows, p)
    return product(exp(group, shares[r], wk) for wk, r in zip(w, rows))


def reconstruction_coefficients(matrix: Matrix, rows: Sequence[int], p: int) -> Dict[int, int]:
    """
    Solve M_I^T · w = e1 for an arbitrary row set (redundant rows allowed).

    Returns {row: w_row} with zero coefficients dropped.
    """
    rows = sorted(set(rows))
    if not rows:
        raise SingularMatrixError("empty row set")
    if any(r < 0 or r >= len(matrix) for r in rows):
        raise DimensionError(f"row index out of range in {rows}")

    A = transpose([matrix[r] for r in rows])
    target = [1] + [0] * (len(A) - 1)
    try:
        w = solve(A, target, p)
    except SingularMatrixError:
        raise SingularMatrixError(
            f"rows {rows} do not span the target vector") from None
    return {r: wr for r, wr in zip(rows, w) if wr}


def combine(coefficients: Mapping[int, int], shares: Shares, p: int) -> int:
    if not coefficients:
        raise SingularMatrixError("no reconstruction coefficients")
    return sum(w * int(shares[r]) for r, w in coefficients.items()) % p


def grp_combine(group: PairingGroup, coefficients: Mapping[int, int], shares: Shares) -> Any:
    if not coefficients:
        raise SingularMatrixError("no reconstruction coefficients")
    return product(exp(group, shares[r], w) for r, w in coefficients.items())
