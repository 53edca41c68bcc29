# -*- coding: utf-8 -*-
"""
access_tree.py  (monotone threshold access structures)
------------------------------------------------------
Callers describe a policy with the value types Leaf / Gate:

    tree = AccessTree(
        threshold_gate(2,
            or_gate(threshold_gate(6, *[Leaf(f"P{i}") for i in range(1, 11)]),
                    Leaf("seller"), Leaf("sub")),
            Leaf("buyer")))

AccessTree flattens that value into an arena of slots addressed by index.
Leaves are numbered left to right; that number is the participant's row in
the compiled LSSS matrix.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Tuple, Union

from pvgss.errors import ConstructionError


@dataclass(frozen=True)
class Leaf:
    identity: Hashable


@dataclass(frozen=True)
class Gate:
    threshold: int
    children: Tuple["Node", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))
        if not self.children:
            raise ConstructionError("gate must have at least one child")
        n = len(self.children)
        if not 1 <= self.threshold <= n:
            raise ConstructionError(
                f"threshold {self.threshold} outside [1, {n}]")

    @property
    def n(self) -> int:
        return len(self.children)


Node = Union[Leaf, Gate]


def threshold_gate(t: int, *children: Node) -> Gate:
    return Gate(t, children)


def and_gate(*children: Node) -> Gate:
    return Gate(len(children), children)


def or_gate(*children: Node) -> Gate:
    return Gate(1, children)


@dataclass(frozen=True)
class Slot:
    """One arena entry. For a leaf `row` is its LSSS row, for a gate -1."""
    is_leaf: bool
    identity: Optional[Hashable]
    threshold: int
    children: Tuple[int, ...]
    row: int


class AccessTree:
    """Immutable arena view of a Leaf/Gate value."""

    def __init__(self, root: Node):
        if not isinstance(root, (Leaf, Gate)):
            raise ConstructionError(f"not an access tree node: {root!r}")

        slots: List[Optional[Slot]] = []
        leaves: List[Hashable] = []
        rows: Dict[Hashable, int] = {}

        # Pre-order walk with an explicit stack; slot indices are reserved
        # on the way down and filled once the children are known.
        slots.append(None)
        stack = [(root, 0)]
        while stack:
            node, idx = stack.pop()
            if isinstance(node, Leaf):
                if node.identity in rows:
                    raise ConstructionError(
                        f"duplicate leaf identity {node.identity!r}")
                rows[node.identity] = len(leaves)
                slots[idx] = Slot(True, node.identity, 1, (), len(leaves))
                leaves.append(node.identity)
                continue
            if not isinstance(node, Gate):
                raise ConstructionError(f"not an access tree node: {node!r}")
            child_idx = []
            for _ in node.children:
                child_idx.append(len(slots))
                slots.append(None)
            slots[idx] = Slot(False, None, node.threshold, tuple(child_idx), -1)
            # reversed so the leftmost child is expanded (and numbered) first
            for child, ci in reversed(list(zip(node.children, child_idx))):
                stack.append((child, ci))

        self._slots: Tuple[Slot, ...] = tuple(slots)  # type: ignore[arg-type]
        self._leaves: Tuple[Hashable, ...] = tuple(leaves)
        self._rows = rows

    # -- arena access --------------------------------------------------------

    @property
    def root(self) -> int:
        return 0

    def slot(self, idx: int) -> Slot:
        return self._slots[idx]

    def __len__(self) -> int:
        return len(self._slots)

    # -- leaves / rows -------------------------------------------------------

    def leaves(self) -> Tuple[Hashable, ...]:
        return self._leaves

    def row_of(self, identity: Hashable) -> int:
        try:
            return self._rows[identity]
        except KeyError:
            raise KeyError(f"unknown participant {identity!r}") from None

    def rows_for(self, identities: Iterable[Hashable]) -> List[int]:
        return sorted(self.row_of(i) for i in identities)

    # -- policy evaluation ---------------------------------------------------

    def _evaluate(self, present: set) -> Dict[int, Optional[List[int]]]:
        """
        Post-order pass; for every slot returns the rows of a minimal
        satisfying selection (the first t satisfied children of each gate),
        or None when the slot is not satisfied.
        """
        out: Dict[int, Optional[List[int]]] = {}
        order: List[int] = []
        stack = [self.root]
        while stack:
            idx = stack.pop()
            order.append(idx)
            stack.extend(self._slots[idx].children)

        for idx in reversed(order):
            s = self._slots[idx]
            if s.is_leaf:
                out[idx] = [s.row] if s.identity in present else None
                continue
            picked: List[int] = []
            got = 0
            for ci in s.children:
                if out[ci] is not None:
                    picked.extend(out[ci])
                    got += 1
                    if got == s.threshold:
                        break
            out[idx] = sorted(picked) if got == s.threshold else None
        return out

    def is_satisfied(self, identities: Iterable[Hashable]) -> bool:
        return self._evaluate(set(identities))[self.root] is not None

    def minimal_rows(self, identities: Iterable[Hashable]) -> Optional[List[int]]:
        """Rows of a minimal authorized subset of `identities`, or None."""
        return self._evaluate(set(identities))[self.root]


def trade_tree(num_proxies: int = 10, threshold: Optional[int] = None) -> AccessTree:
    """
    tau_trade = 2-of-(1-of-(t-of-(P1..Pn), seller, sub), buyer)

    The buyer must be joined either by the seller, by the substitute, or by
    a t-of-n quorum of proxies.  t defaults to a strict majority.
    """
    if num_proxies < 1:
        raise ConstructionError("need at least one proxy")
    t = num_proxies // 2 + 1 if threshold is None else threshold
    proxies = threshold_gate(t, *[Leaf(f"P{i}") for i in range(1, num_proxies + 1)])
    return AccessTree(
        threshold_gate(2,
                       or_gate(proxies, Leaf("seller"), Leaf("sub")),
                       Leaf("buyer")))
