# -*- coding: utf-8 -*-
"""
pvgss — publicly verifiable generalized secret sharing over pairing groups.

    from pvgss import pv_core, lsss
    from pvgss.access_tree import trade_tree

    tree   = trade_tree(10)
    params = pv_core.setup_params("BN254")
    matrix = lsss.convert(tree, params.order)
"""

from pvgss.access_tree import (AccessTree, Gate, Leaf, and_gate, or_gate,
                               threshold_gate, trade_tree)
from pvgss.errors import (ConstructionError, DimensionError, KeyInverseError,
                          KeyValidityError, ProofVerificationError, PVGSSError,
                          SingularMatrixError)
from pvgss.lsss import Quorum, convert, inverse_submatrix

__version__ = "0.1.0"
__all__ = [
    "AccessTree",
    "Gate",
    "Leaf",
    "and_gate",
    "or_gate",
    "threshold_gate",
    "trade_tree",
    "Quorum",
    "convert",
    "inverse_submatrix",
    "PVGSSError",
    "ConstructionError",
    "DimensionError",
    "SingularMatrixError",
    "ProofVerificationError",
    "KeyInverseError",
    "KeyValidityError",
]
