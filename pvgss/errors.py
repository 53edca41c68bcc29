# -*- coding: utf-8 -*-
"""
errors.py  (PVGSS error taxonomy)
---------------------------------
Every stage surfaces its failure as one of these; nothing is defaulted.
"""


class PVGSSError(Exception):
    """Base class for all PVGSS failures."""


class ConstructionError(PVGSSError):
    """Malformed access tree (empty gate, threshold outside [1, n], ...)."""


class DimensionError(PVGSSError):
    """Matrix operand shapes are incompatible."""


class SingularMatrixError(PVGSSError):
    """No invertible pivot, or the row set does not span the target vector."""


class ProofVerificationError(PVGSSError):
    """The dealer's NIZK proof does not hold."""


class KeyInverseError(PVGSSError):
    """A secret key has no inverse modulo the group order."""


class KeyValidityError(PVGSSError):
    """A partial decryption is not consistent with the participant's key."""
