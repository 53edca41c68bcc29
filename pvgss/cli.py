# -*- coding: utf-8 -*-
"""
cli.py  (PVGSS trade demo)
--------------------------
Commands:
  pvgss matrix --proxies 10 --threshold 6
  pvgss trade  --proxies 10 --threshold 6 --plaintext "hello world" --curve BN254

`trade` walks the full protocol for
  tau_trade = 2-of-(1-of-(t-of-(P1..Pn), seller, sub), buyer):

  1. Setup for every participant
  2. Share a random secret s; lock the plaintext under g1^s
  3. Public Verify against {buyer, seller} and {buyer, t proxies}
  4. PreRecon + KeyVrf for the proxy quorum
  5. Recon g1^s and open the envelope

Nothing is written to disk; keys and shares live only for the run.
"""

from __future__ import annotations

import argparse
import logging
import secrets
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from pvgss import envelope, lsss, pv_core
from pvgss.access_tree import trade_tree
from pvgss.errors import PVGSSError
from pvgss.field import format_matrix
from pvgss.group import exp


def cmd_matrix(args: argparse.Namespace) -> None:
    params = pv_core.setup_params(args.curve)
    try:
        tree = trade_tree(args.proxies, args.threshold)
    except PVGSSError as e:
        raise SystemExit(f"[LSSS] {type(e).__name__}: {e}")
    M = lsss.convert(tree, params.order)
    print(f"[LSSS] {len(M)} rows x {len(M[0])} cols  rows={list(tree.leaves())}")
    print(format_matrix(M))


def _run_trade(args: argparse.Namespace, executor: Optional[ThreadPoolExecutor]) -> None:
    params = pv_core.setup_params(args.curve)
    tree = trade_tree(args.proxies, args.threshold)
    M = lsss.convert(tree, params.order)
    n = len(tree.leaves())

    # ── 1. Setup ──────────────────────────────────────────────────────────────
    keys = pv_core.setup_participants(params, n)
    pks = [k.pk1 for k in keys]
    print(f"[PVGSS] Setup OK  participants={n}  curve={params.curve}")

    # ── 2. Share ──────────────────────────────────────────────────────────────
    secret = secrets.randbelow(params.order)
    expected = exp(params.group, params.g1, secret)
    dealt = pv_core.share(params, secret, M, pks, executor=executor)
    locked = envelope.aes_gcm_encrypt(
        envelope.derive_key(params.group, expected), args.plaintext.encode("utf-8"))
    print(f"[PVGSS] Share OK  matrix={len(M)}x{len(M[0])}")

    # ── 3. Verify ─────────────────────────────────────────────────────────────
    proxies = [f"P{i}" for i in range(1, args.proxies + 1)]
    seller_q = lsss.Quorum.prepare(M, tree.minimal_rows(["buyer", "seller"]), params.order)
    proxy_rows = tree.minimal_rows(["buyer"] + proxies)
    proxy_q = lsss.Quorum.prepare(M, proxy_rows, params.order)
    pv_core.verify(params, dealt.commitments, dealt.proof, pks, [seller_q, proxy_q],
                   executor=executor)
    print("[PVGSS] Verify PASSED")

    # ── 4. PreRecon + KeyVrf ──────────────────────────────────────────────────
    C = dealt.commitments
    partials = pv_core.prerecon_all(params, C, {r: keys[r] for r in proxy_q.rows},
                                    executor=executor)
    pv_core.keyvrf_all(params, C, partials, pks, executor=executor)
    print(f"[PVGSS] KeyVrf PASSED  rows={list(proxy_q.rows)}")

    # ── 5. Recon ──────────────────────────────────────────────────────────────
    recovered = pv_core.recon(params, proxy_q, partials)
    if recovered != expected:
        raise SystemExit("[PVGSS] Recon FAILED  (g1^s mismatch)")
    pt = envelope.aes_gcm_decrypt(envelope.derive_key(params.group, recovered), locked)
    print("[PVGSS] Recon OK")
    print("[CLIENT] Plaintext:", pt.decode("utf-8", errors="replace"))


def cmd_trade(args: argparse.Namespace) -> None:
    try:
        if args.workers > 1:
            with ThreadPoolExecutor(max_workers=args.workers) as ex:
                _run_trade(args, ex)
        else:
            _run_trade(args, None)
    except PVGSSError as e:
        raise SystemExit(f"[PVGSS] {type(e).__name__}: {e}")


def main(argv=None) -> None:
    ap = argparse.ArgumentParser(description="PVGSS command-line tool")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = ap.add_subparsers(dest="cmd", required=True)

    def common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--curve", default=pv_core.DEFAULT_CURVE,
                       help=f"Pairing curve (default: {pv_core.DEFAULT_CURVE})")
        p.add_argument("--proxies", type=int, default=10, help="Number of proxies (default: 10)")
        p.add_argument("--threshold", type=int, default=None,
                       help="Proxy threshold (default: majority)")

    # --- matrix ---
    s0 = sub.add_parser("matrix", help="Print the compiled trade LSSS matrix")
    common(s0)
    s0.set_defaults(func=cmd_matrix)

    # --- trade ---
    s1 = sub.add_parser("trade", help="Run Setup/Share/Verify/PreRecon/KeyVrf/Recon")
    common(s1)
    s1.add_argument("--plaintext", default="hello world", help="Payload locked under g1^s")
    s1.add_argument("--workers", type=int, default=1, help="Worker threads for per-row work")
    s1.set_defaults(func=cmd_trade)

    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
