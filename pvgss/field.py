# -*- coding: utf-8 -*-
"""
field.py  (matrix algebra over Z_p)
-----------------------------------
Matrices are plain lists of rows holding Python ints.  Every operation
reduces modulo the prime p, and pivots are normalised with exact modular
inverses, so results are bit-exact.

  multiply_matrix(A, B, p)      C = A·B mod p
  gauss_jordan_inverse(A, p)    A^{-1} mod p
  solve(A, b, p)                one x with A·x = b mod p
"""

from __future__ import annotations

from typing import List, Sequence

from pvgss.errors import DimensionError, SingularMatrixError

Matrix = List[List[int]]


def identity_matrix(n: int) -> Matrix:
    return [[1 if i == j else 0 for j in range(n)] for i in range(n)]


def transpose(A: Sequence[Sequence[int]]) -> Matrix:
    if not A:
        return []
    return [list(col) for col in zip(*A)]


def multiply_matrix(A: Sequence[Sequence[int]], B: Sequence[Sequence[int]], p: int) -> Matrix:
    if not A or not A[0] or not B or not B[0]:
        raise DimensionError("cannot multiply an empty matrix")
    n, m, q = len(A), len(A[0]), len(B[0])
    if len(B) != m:
        raise DimensionError(f"columns of A ({m}) do not match rows of B ({len(B)})")
    if any(len(row) != m for row in A) or any(len(row) != q for row in B):
        raise DimensionError("ragged matrix operand")

    C = [[0] * q for _ in range(n)]
    for i in range(n):
        Ai = A[i]
        for j in range(q):
            acc = 0
            for k in range(m):
                acc = (acc + Ai[k] * B[k][j]) % p
            C[i][j] = acc
    return C


def gauss_jordan_inverse(A: Sequence[Sequence[int]], p: int) -> Matrix:
    """
    Invert a square matrix over Z_p by Gauss-Jordan elimination on [A | I].

    When the diagonal entry of column i is zero, rows below i are scanned
    for a nonzero entry and swapped in; if none exists the matrix is
    singular.
    """
    n = len(A)
    if n == 0:
        raise DimensionError("matrix must be non-empty")
    for row in A:
        if len(row) != n:
            raise DimensionError("matrix must be square")

    aug = [[x % p for x in A[i]] + [1 if i == j else 0 for j in range(n)]
           for i in range(n)]

    for i in range(n):
        if aug[i][i] == 0:
            for j in range(i + 1, n):
                if aug[j][i] != 0:
                    aug[i], aug[j] = aug[j], aug[i]
                    break
            else:
                raise SingularMatrixError(
                    f"matrix is singular (no pivot in column {i})")

        inv = pow(aug[i][i], -1, p)
        aug[i] = [(x * inv) % p for x in aug[i]]

        for j in range(n):
            if j == i or aug[j][i] == 0:
                continue
            factor = aug[j][i]
            aug[j] = [(aug[j][k] - factor * aug[i][k]) % p for k in range(2 * n)]

    return [row[n:] for row in aug]


def _echelon(A: Sequence[Sequence[int]], p: int) -> tuple:
    """Reduced row echelon form mod p; returns (rows, pivot columns)."""
    rows = [[x % p for x in r] for r in A]
    if not rows:
        return rows, []
    n_rows, n_cols = len(rows), len(rows[0])
    pivots: List[int] = []
    cur = 0
    for col in range(n_cols):
        if cur == n_rows:
            break
        pivot = next((r for r in range(cur, n_rows) if rows[r][col] != 0), None)
        if pivot is None:
            continue
        rows[cur], rows[pivot] = rows[pivot], rows[cur]
        inv = pow(rows[cur][col], -1, p)
        rows[cur] = [(x * inv) % p for x in rows[cur]]
        for r in range(n_rows):
            if r != cur and rows[r][col] != 0:
                factor = rows[r][col]
                rows[r] = [(rows[r][k] - factor * rows[cur][k]) % p
                           for k in range(n_cols)]
        pivots.append(col)
        cur += 1
    return rows, pivots


def rank(A: Sequence[Sequence[int]], p: int) -> int:
    return len(_echelon(A, p)[1])


def solve(A: Sequence[Sequence[int]], b: Sequence[int], p: int) -> List[int]:
    """
    Solve A·x = b over Z_p on the augmented system [A | b].

    Free variables are fixed to 0.  An inconsistent system (a zero row
    with a nonzero right-hand side) raises SingularMatrixError.
    """
    if len(A) != len(b):
        raise DimensionError(f"A has {len(A)} rows but b has {len(b)} entries")
    if not A or not A[0]:
        raise DimensionError("cannot solve an empty system")
    n_vars = len(A[0])

    aug = [list(row) + [b[i]] for i, row in enumerate(A)]
    reduced, pivots = _echelon(aug, p)
    if n_vars in pivots:
        raise SingularMatrixError("system has no solution")

    x = [0] * n_vars
    for r, col in enumerate(pivots):
        x[col] = reduced[r][n_vars]
    return x


def format_matrix(M: Sequence[Sequence[int]]) -> str:
    return "\n".join(" ".join(str(v) for v in row) for row in M)
