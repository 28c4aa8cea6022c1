"""Tests for keyed digests and signed proof URLs."""

import time
from urllib.parse import parse_qs, urlsplit

import pytest
from django.test import override_settings

from common.signing import (
    SIGNATURE_LENGTH,
    derive_key,
    digest,
    digests_match,
    generate_signature,
    generate_signed_url,
    is_protected_path,
    parse_signed_url_params,
    verify_signature,
)

PROOF_PATH = "/media/protected/payment_proofs/7f1c/0a9e.png"


def _split(url: str) -> tuple[str, str, str]:
    parts = urlsplit(url)
    query = parse_qs(parts.query)
    return parts.path, query["exp"][0], query["sig"][0]


class TestKeys:
    def test_domains_do_not_share_keys(self) -> None:
        assert derive_key("gatepass:a", "secret") != derive_key("gatepass:b", "secret")
        assert digest(derive_key("gatepass:a", "secret"), "msg") != digest(derive_key("gatepass:b", "secret"), "msg")

    def test_digest_is_full_sha256_hex(self) -> None:
        value = digest(derive_key("gatepass:a", "secret"), "msg")

        assert len(value) == 64
        assert set(value) <= set("0123456789abcdef")

    @pytest.mark.parametrize("given", ["", "abc", "é" * 64, "\udcff"])
    def test_digests_match_tolerates_garbage(self, given: str) -> None:
        assert digests_match(given, "a" * 64) is False

    def test_digests_match(self) -> None:
        assert digests_match("ab" * 32, "ab" * 32) is True


class TestSignedURLs:
    def test_signature_is_truncated(self) -> None:
        assert len(generate_signature(PROOF_PATH, int(time.time()) + 60)) == SIGNATURE_LENGTH

    def test_signed_url_round_trip(self) -> None:
        path, exp, sig = _split(generate_signed_url("protected/payment_proofs/7f1c/0a9e.png", expires_in=120))

        assert path == PROOF_PATH
        assert int(exp) - int(time.time()) in (119, 120)
        assert verify_signature(path, exp, sig) is True

    def test_other_path_is_refused(self) -> None:
        path, exp, sig = _split(generate_signed_url("protected/payment_proofs/7f1c/0a9e.png"))

        assert verify_signature(path.replace("0a9e", "0a9f"), exp, sig) is False

    def test_extended_expiry_is_refused(self) -> None:
        path, exp, sig = _split(generate_signed_url("protected/payment_proofs/7f1c/0a9e.png"))

        assert verify_signature(path, str(int(exp) + 86400), sig) is False

    def test_expired(self) -> None:
        expires = int(time.time()) - 1

        assert verify_signature(PROOF_PATH, str(expires), generate_signature(PROOF_PATH, expires)) is False

    @pytest.mark.parametrize("exp", ["", "soon", "1e10"])
    def test_unparseable_expiry(self, exp: str) -> None:
        assert verify_signature(PROOF_PATH, exp, "0" * SIGNATURE_LENGTH) is False

    def test_rotating_secret_key_invalidates_urls(self) -> None:
        path, exp, sig = _split(generate_signed_url("protected/payment_proofs/7f1c/0a9e.png"))

        with override_settings(SECRET_KEY="rotated"):
            assert verify_signature(path, exp, sig) is False


def test_protected_paths() -> None:
    assert is_protected_path("protected/payment_proofs/7f1c/0a9e.png") is True
    assert is_protected_path("payment_proofs/7f1c/0a9e.png") is False
    assert is_protected_path("") is False


def test_parse_signed_url_params() -> None:
    assert parse_signed_url_params(PROOF_PATH, "1", "abc") == (PROOF_PATH, "1", "abc")
    assert parse_signed_url_params(PROOF_PATH, None, "abc") is None
    assert parse_signed_url_params(PROOF_PATH, "1", "") is None
