import dataclasses
import secrets
import threading
from concurrent.futures import CancelledError, ThreadPoolExecutor

import pytest
from charm.toolbox.pairinggroup import ZR
from cryptography.exceptions import InvalidTag

from pvgss import dleq, envelope, lsss, pv_core
from pvgss.errors import (DimensionError, KeyInverseError, KeyValidityError,
                          ProofVerificationError, SingularMatrixError)
from pvgss.group import exp

PROXIES = [f"P{i}" for i in range(1, 11)]


@pytest.fixture(scope="module")
def run(params, trade):
    """One full Setup + Share over the 13-participant trade tree."""
    M = lsss.convert(trade, params.order)
    keys = pv_core.setup_participants(params, len(trade.leaves()))
    pks = [k.pk1 for k in keys]
    secret = secrets.randbelow(params.order)
    dealt = pv_core.share(params, secret, M, pks)
    seller_q = lsss.Quorum.prepare(M, trade.minimal_rows(["buyer", "seller"]), params.order)
    proxy_q = lsss.Quorum.prepare(M, trade.minimal_rows(["buyer"] + PROXIES[3:9]), params.order)
    return {
        "M": M, "keys": keys, "pks": pks, "secret": secret, "dealt": dealt,
        "quorums": [seller_q, proxy_q],
    }


def test_setup_keypair(params):
    kp = pv_core.setup(params)
    assert 0 < kp.sk < params.order
    assert kp.pk1 == exp(params.group, params.g1, kp.sk)
    assert kp.pk2 == exp(params.group, params.g2, kp.sk)
    assert pv_core.setup(params).sk != kp.sk


def test_trade_end_to_end(params, trade, run):
    dealt, pks = run["dealt"], run["pks"]
    seller_q, proxy_q = run["quorums"]
    assert len(proxy_q.rows) == 7

    assert pv_core.verify(params, dealt.commitments, dealt.proof, pks, run["quorums"])

    C = dealt.commitments
    partials = {}
    for r in proxy_q.rows:
        partials[r] = pv_core.prerecon(params, C[r], run["keys"][r].sk)
        assert pv_core.keyvrf(params, C[r], partials[r], pks[r])

    expected = exp(params.group, params.g1, run["secret"])
    assert pv_core.recon(params, proxy_q, partials) == expected


def test_two_quorums_reconstruct_same_secret(params, run):
    C, keys = run["dealt"].commitments, run["keys"]
    results = []
    for q in run["quorums"]:
        partials = pv_core.prerecon_all(params, C, {r: keys[r] for r in q.rows})
        assert pv_core.keyvrf_all(params, C, partials, run["pks"])
        results.append(pv_core.recon(params, q, partials))
    assert results[0] == results[1]
    assert results[0] == exp(params.group, params.g1, run["secret"])


def test_recon_accepts_bare_elements(params, run):
    C, keys = run["dealt"].commitments, run["keys"]
    q = run["quorums"][0]
    values = {r: pv_core.prerecon(params, C[r], keys[r].sk).value for r in q.rows}
    assert pv_core.recon(params, q, values) == exp(params.group, params.g1, run["secret"])


@pytest.mark.parametrize("field", ["cp", "shat_i"])
def test_single_fault_injection_fails_verify(params, run, field):
    dealt, pks = run["dealt"], run["pks"]
    proof = dealt.proof
    for i in range(len(pks)):
        if field == "cp":
            cp = list(proof.cp)
            cp[i] = cp[i] * params.g1
            bad = dataclasses.replace(proof, cp=tuple(cp))
        else:
            shat_i = list(proof.shat_i)
            shat_i[i] = (shat_i[i] + 1) % params.order
            bad = dataclasses.replace(proof, shat_i=tuple(shat_i))
        with pytest.raises(ProofVerificationError):
            pv_core.verify(params, dealt.commitments, bad, pks, run["quorums"])


def test_tampered_aggregate_response_fails(params, run):
    dealt = run["dealt"]
    bad = dataclasses.replace(dealt.proof, shat=(dealt.proof.shat + 1) % params.order)
    with pytest.raises(ProofVerificationError):
        pv_core.verify(params, dealt.commitments, bad, run["pks"], run["quorums"])


def test_tampered_commitment_fails(params, run):
    dealt = run["dealt"]
    C = list(dealt.commitments)
    C[0] = C[0] * params.g1
    with pytest.raises(ProofVerificationError):
        pv_core.verify(params, C, dealt.proof, run["pks"], run["quorums"])


def test_forged_challenge_fails(params, run):
    dealt = run["dealt"]
    bad = dataclasses.replace(dealt.proof, c=(dealt.proof.c + 1) % params.order)
    with pytest.raises(ProofVerificationError):
        pv_core.verify(params, dealt.commitments, bad, run["pks"], run["quorums"])


def test_inconsistent_dealer_caught_by_cross_quorum_check(params, run):
    """A row-consistent proof whose ŝ_i do not lie on one sharing."""
    group, p, M, pks = params.group, params.order, run["M"], run["pks"]
    s, sp = 11, 23
    lam = lsss.share(s, M, p)
    lam_p = lsss.share(sp, M, p)
    lam_p[12] = (lam_p[12] + 1) % p          # buyer's blinding share is off
    C = [exp(group, pks[i], lam[i]) for i in range(len(pks))]
    Cp = [exp(group, pks[i], lam_p[i]) for i in range(len(pks))]
    c = pv_core.challenge(params, C, Cp)
    proof = pv_core.Proof(
        cp=tuple(Cp), c=c, shat=(sp - c * s) % p,
        shat_i=tuple((lam_p[i] - c * lam[i]) % p for i in range(len(pks))))
    with pytest.raises(ProofVerificationError):
        pv_core.verify(params, C, proof, pks, run["quorums"])


def test_verify_requires_a_quorum(params, run):
    dealt = run["dealt"]
    with pytest.raises(ProofVerificationError):
        pv_core.verify(params, dealt.commitments, dealt.proof, run["pks"], [])


def test_verify_rejects_length_mismatch(params, run):
    dealt = run["dealt"]
    with pytest.raises(ProofVerificationError):
        pv_core.verify(params, dealt.commitments[:-1], dealt.proof, run["pks"][:-1],
                       run["quorums"])


def test_unauthorized_quorum_cannot_be_prepared(params, run):
    with pytest.raises(SingularMatrixError):
        lsss.Quorum.prepare(run["M"], [10, 11], params.order)   # seller + sub
    with pytest.raises(SingularMatrixError):
        lsss.Quorum.prepare(run["M"], list(range(6)), params.order)  # proxies only


def test_share_key_count_mismatch(params, run):
    with pytest.raises(DimensionError):
        pv_core.share(params, 1, run["M"], run["pks"][:5])


def test_share_accepts_zr_secret(params, run):
    secret = params.group.random(ZR)
    dealt = pv_core.share(params, secret, run["M"], run["pks"])
    assert pv_core.verify(params, dealt.commitments, dealt.proof, run["pks"], run["quorums"])


def test_keyvrf_rejects_forged_partial(params, run):
    C, keys, pks = run["dealt"].commitments, run["keys"], run["pks"]
    good = pv_core.prerecon(params, C[0], keys[0].sk)

    forged = pv_core.PartialShare(value=good.value * params.g1, proof=good.proof)
    with pytest.raises(KeyValidityError):
        pv_core.keyvrf(params, C[0], forged, pks[0])

    # decrypted with someone else's key
    wrong = pv_core.prerecon(params, C[0], keys[1].sk)
    with pytest.raises(KeyValidityError):
        pv_core.keyvrf(params, C[0], wrong, pks[0])
    with pytest.raises(KeyValidityError):
        pv_core.keyvrf(params, C[0], good, pks[1])


def test_keyvrf_pairing(params, run):
    C, keys = run["dealt"].commitments, run["keys"]
    good = pv_core.prerecon(params, C[2], keys[2].sk)
    assert pv_core.keyvrf_pairing(params, C[2], good.value, keys[2].pk2)
    with pytest.raises(KeyValidityError):
        pv_core.keyvrf_pairing(params, C[2], good.value * params.g1, keys[2].pk2)


def test_prerecon_zero_key(params, run):
    with pytest.raises(KeyInverseError):
        pv_core.prerecon(params, run["dealt"].commitments[0], 0)
    with pytest.raises(KeyInverseError):
        pv_core.prerecon(params, run["dealt"].commitments[0], params.order)


def test_dleq_roundtrip_and_tamper(params):
    group = params.group
    x = secrets.randbelow(params.order - 1) + 1
    h = exp(group, params.g1, 12345)
    gx, hx = exp(group, params.g1, x), exp(group, h, x)
    proof = dleq.prove(group, params.g1, h, x, gx, hx)
    assert dleq.verify(group, params.g1, h, gx, hx, proof)
    assert not dleq.verify(group, params.g1, h, gx, hx * params.g1, proof)
    assert not dleq.verify(group, params.g1, h, gx, hx,
                           dleq.DLEQProof(c=proof.c, z=(proof.z + 1) % params.order))


def test_group_shares_reconstruct_element(params, run):
    S = exp(params.group, params.g1, 777)
    shares = lsss.grp_share(params.group, S, run["M"], params.order)
    for q in run["quorums"]:
        assert lsss.grp_recon(params.group, q.inverse, shares, q.rows, params.order) == S


def test_share_and_verify_on_executor(params, run):
    with ThreadPoolExecutor(max_workers=4) as ex:
        dealt = pv_core.share(params, 5, run["M"], run["pks"], executor=ex)
        assert pv_core.verify(params, dealt.commitments, dealt.proof, run["pks"],
                              run["quorums"], executor=ex)


def test_cancel_signal_stops_work(params, run):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(CancelledError):
        pv_core.share(params, 5, run["M"], run["pks"], cancel=cancel)
    dealt = run["dealt"]
    with pytest.raises(CancelledError):
        pv_core.verify(params, dealt.commitments, dealt.proof, run["pks"],
                       run["quorums"], cancel=cancel)


def test_envelope_opens_only_with_reconstructed_secret(params, run):
    group = params.group
    S = exp(group, params.g1, run["secret"])
    locked = envelope.aes_gcm_encrypt(envelope.derive_key(group, S), b"hello world")
    assert envelope.aes_gcm_decrypt(envelope.derive_key(group, S), locked) == b"hello world"
    with pytest.raises(InvalidTag):
        envelope.aes_gcm_decrypt(envelope.derive_key(group, S * params.g1), locked)
