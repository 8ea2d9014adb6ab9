"""
Tests for signature encoding, decoding and verification.

Tests cover:
- Known signatures produced by the webhook sender
- Header decoding and format errors
- Secret, payload and timestamp validation
- Tamper sensitivity and strict header matching
- Async twins and pluggable signers
"""

import asyncio

import pytest

from sanity_webhook import (
    MINIMUM_TIMESTAMP,
    AsyncHmacSha256Signer,
    DecodedSignature,
    HmacSha256Signer,
    ThreadedSigner,
    WebhookSignatureError,
    WebhookSignatureFormatError,
    WebhookSignatureValueError,
    aassert_valid_signature,
    acompute_signature,
    aencode_signature_header,
    ais_valid_signature,
    assert_valid_signature,
    compute_signature,
    decode_signature_header,
    encode_signature_header,
    is_valid_signature,
)

HASH = "tLa470fx7qkLLEcMOcEUFuBbRSkGujyskxrNXcoh0N0"


class TestEncodeSignatureHeader:
    """Test building signature headers."""

    def test_known_signature(self, payload, secret, signature):
        assert encode_signature_header(payload, 1633519811129, secret) == signature

    def test_known_signature_other_secret(self):
        header = encode_signature_header(
            '{"title":"GROQ-Hooks are neat"}', 1633518820676, "try-me"
        )
        assert header == "t=1633518820676,v1=e7C9h2sfbFfc4V7TEz7PSOp4IoNzl0UdVsBV-1wgdeA"

    def test_compute_signature_is_hash_part(self, payload, secret):
        assert compute_signature(payload, 1633519811129, secret) == HASH

    def test_deterministic_for_same_input(self, payload, secret):
        s1 = compute_signature(payload, 1633519811129, secret)
        s2 = compute_signature(payload, 1633519811129, secret)
        assert s1 == s2

    def test_output_is_unpadded_base64url(self, secret):
        for i in range(20):
            sig = compute_signature(f'{{"n":{i}}}', MINIMUM_TIMESTAMP + i, secret)
            assert len(sig) == 43
            assert not set(sig) & {"+", "/", "="}

    def test_timestamp_floor_is_inclusive(self, payload, secret):
        header = encode_signature_header(payload, MINIMUM_TIMESTAMP, secret)
        assert header.startswith("t=1609459200000,v1=")

    def test_rejects_timestamp_below_floor(self, payload, secret):
        with pytest.raises(WebhookSignatureFormatError, match="millisecond precision"):
            encode_signature_header(payload, 1609459199999, secret)

    def test_rejects_timestamp_in_seconds(self, payload, secret):
        with pytest.raises(WebhookSignatureFormatError):
            encode_signature_header(payload, 1633519811, secret)

    @pytest.mark.parametrize(
        "timestamp",
        [float("nan"), float("inf"), 1633519811129.5, "1633519811129", None, True],
    )
    def test_rejects_invalid_timestamps(self, payload, secret, timestamp):
        with pytest.raises(WebhookSignatureFormatError):
            encode_signature_header(payload, timestamp, secret)

    def test_accepts_integral_float_timestamp(self, payload, secret, signature):
        assert encode_signature_header(payload, 1633519811129.0, secret) == signature

    @pytest.mark.parametrize("secret", ["", None, 1234])
    def test_rejects_invalid_secret(self, payload, secret):
        with pytest.raises(WebhookSignatureFormatError, match="Invalid secret provided"):
            encode_signature_header(payload, 1633519811129, secret)

    def test_rejects_empty_payload(self, secret):
        with pytest.raises(WebhookSignatureFormatError, match="empty payload"):
            encode_signature_header("", 1633519811129, secret)

    def test_rejects_non_string_payload(self, secret):
        with pytest.raises(WebhookSignatureFormatError, match="JSON-encoded string"):
            encode_signature_header({"_id": "resume"}, 1633519811129, secret)

    def test_secret_is_checked_before_payload(self):
        with pytest.raises(WebhookSignatureFormatError, match="Invalid secret provided"):
            encode_signature_header("", 1, "")

    def test_custom_signer(self, payload, secret, signature):
        class RecordingSigner(HmacSha256Signer):
            calls = []

            def sign(self, message, key):
                self.calls.append((message, key))
                return super().sign(message, key)

        signer = RecordingSigner()
        assert encode_signature_header(payload, 1633519811129, secret, signer=signer) == signature
        assert signer.calls == [(b'1633519811129.{"_id":"resume"}', b"test")]


class TestDecodeSignatureHeader:
    """Test parsing signature headers."""

    def test_decodes_valid_header(self, signature):
        decoded = decode_signature_header(signature)
        assert decoded == DecodedSignature(timestamp=1633519811129, hashed_payload=HASH)

    def test_accepts_space_after_comma(self):
        decoded = decode_signature_header(f"t=1633519811129, v1={HASH}")
        assert decoded.timestamp == 1633519811129
        assert decoded.hashed_payload == HASH

    def test_does_not_range_check_timestamp(self):
        assert decode_signature_header("t=1,v1=abc").timestamp == 1

    def test_decoded_signature_is_frozen(self, signature):
        decoded = decode_signature_header(signature)
        with pytest.raises(Exception):
            decoded.timestamp = 0  # type: ignore[misc]

    def test_decoded_signature_accepts_wire_alias(self):
        decoded = DecodedSignature.model_validate({"timestamp": 1, "hashedPayload": "x"})
        assert decoded.hashed_payload == "x"

    @pytest.mark.parametrize("header", ["", None])
    def test_rejects_missing_header(self, header):
        with pytest.raises(WebhookSignatureFormatError, match="Missing or empty"):
            decode_signature_header(header)

    @pytest.mark.parametrize(
        "header",
        [
            f"t=1633519811129,v4={HASH}",
            f"t=1633519811129,v5={HASH}",
            f"v1={HASH}",
            "t=1633519811129",
            "t=1633519811129,v1=",
            f"t=,v1={HASH}",
            f"t=-1633519811129,v1={HASH}",
            f"t=1633519811129;v1={HASH}",
            f"t=1633519811129,v1={HASH},v2=abc",
            "nonsense",
        ],
    )
    def test_rejects_invalid_format(self, header):
        with pytest.raises(WebhookSignatureFormatError, match="Invalid signature payload format"):
            decode_signature_header(header)


class TestAssertValidSignature:
    """Test verifying signatures against payloads."""

    def test_valid_signature(self, payload, signature, secret):
        assert_valid_signature(payload, signature, secret)

    def test_round_trip(self, secret):
        for payload in ['{"a":1}', '{"title":"Smörgåsbord ☃"}', "plain text"]:
            header = encode_signature_header(payload, 1700000000000, secret)
            assert decode_signature_header(header).hashed_payload == header.split("v1=")[1]
            assert_valid_signature(payload, header, secret)

    def test_tampered_timestamp(self, payload, secret):
        with pytest.raises(WebhookSignatureValueError, match="Signature is invalid"):
            assert_valid_signature(payload, f"t=1633519811128,v1={HASH}", secret)

    def test_tampered_hash(self, payload, secret):
        with pytest.raises(WebhookSignatureValueError, match="Signature is invalid"):
            assert_valid_signature(payload, f"t=1633519811129,v1={HASH[:-1]}1", secret)

    def test_every_hash_character_is_significant(self, payload, secret):
        for i, char in enumerate(HASH):
            flipped = "A" if char != "A" else "B"
            tampered = f"t=1633519811129,v1={HASH[:i]}{flipped}{HASH[i + 1:]}"
            assert not is_valid_signature(payload, tampered, secret)

    def test_tampered_payload(self, signature, secret):
        with pytest.raises(WebhookSignatureValueError, match="Signature is invalid"):
            assert_valid_signature('{"_id":"structure"}', signature, secret)

    def test_wrong_secret(self, payload, signature):
        with pytest.raises(WebhookSignatureValueError):
            assert_valid_signature(payload, signature, "wrong-secret")

    def test_non_canonical_header_fails(self, payload, secret):
        with pytest.raises(WebhookSignatureValueError):
            assert_valid_signature(payload, f"t=1633519811129, v1={HASH}", secret)

    def test_unknown_version_is_format_error(self, payload, secret):
        with pytest.raises(WebhookSignatureFormatError, match="Invalid signature payload format"):
            assert_valid_signature(payload, f"t=1633519811129,v5={HASH}", secret)

    def test_legacy_timestamp_is_format_error(self, payload, secret):
        with pytest.raises(WebhookSignatureFormatError, match="millisecond precision"):
            assert_valid_signature(payload, f"t=1633519811,v1={HASH}", secret)


class TestIsValidSignature:
    """Test the boolean signature check."""

    def test_returns_true_on_valid_signature(self, payload, signature, secret):
        assert is_valid_signature(payload, signature, secret) is True

    @pytest.mark.parametrize(
        "header",
        [
            f"t=1633519811128,v1={HASH}",
            f"t=1633519811129,v1={HASH[:-1]}1",
            f"t=1633519811129,v5={HASH}",
            "",
        ],
    )
    def test_returns_false_on_invalid_signature(self, payload, secret, header):
        assert is_valid_signature(payload, header, secret) is False

    def test_returns_false_on_invalid_payload(self, signature, secret):
        assert is_valid_signature('{"_id":"structure"}', signature, secret) is False

    def test_propagates_unrelated_errors(self, payload, signature, secret):
        class BrokenSigner:
            def sign(self, message, key):
                raise RuntimeError("backend unavailable")

        with pytest.raises(RuntimeError, match="backend unavailable"):
            is_valid_signature(payload, signature, secret, signer=BrokenSigner())

    def test_propagates_base_signature_error(self, payload, signature, secret):
        class StrictSigner:
            def sign(self, message, key):
                raise WebhookSignatureError("signer refused the key")

        with pytest.raises(WebhookSignatureError, match="signer refused"):
            is_valid_signature(payload, signature, secret, signer=StrictSigner())


class TestAsyncSignature:
    """Test the awaitable twins."""

    def test_acompute_signature(self, payload, secret):
        assert asyncio.run(acompute_signature(payload, 1633519811129, secret)) == HASH

    def test_aencode_signature_header(self, payload, secret, signature):
        header = asyncio.run(aencode_signature_header(payload, 1633519811129, secret))
        assert header == signature

    def test_aassert_valid_signature(self, payload, signature, secret):
        asyncio.run(aassert_valid_signature(payload, signature, secret))

    def test_aassert_rejects_tampered_payload(self, signature, secret):
        with pytest.raises(WebhookSignatureValueError):
            asyncio.run(aassert_valid_signature('{"_id":"structure"}', signature, secret))

    def test_aencode_validates_inputs(self, payload, secret):
        with pytest.raises(WebhookSignatureFormatError):
            asyncio.run(aencode_signature_header(payload, 1609459199999, secret))

    def test_ais_valid_signature(self, payload, signature, secret):
        assert asyncio.run(ais_valid_signature(payload, signature, secret)) is True
        assert asyncio.run(ais_valid_signature("{}", signature, secret)) is False

    @pytest.mark.parametrize(
        "signer",
        [AsyncHmacSha256Signer(), ThreadedSigner(HmacSha256Signer())],
    )
    def test_async_signers_match_sync(self, payload, secret, signer):
        result = asyncio.run(acompute_signature(payload, 1633519811129, secret, signer=signer))
        assert result == compute_signature(payload, 1633519811129, secret)

    def test_concurrent_verifications(self, secret):
        async def _run():
            payloads = [f'{{"n":{i}}}' for i in range(25)]
            headers = [encode_signature_header(p, 1700000000000, secret) for p in payloads]
            results = await asyncio.gather(
                *(ais_valid_signature(p, h, secret) for p, h in zip(payloads, headers)),
                *(ais_valid_signature(p, h, secret) for p, h in zip(payloads, reversed(headers))),
            )
            return results

        results = asyncio.run(_run())
        assert all(results[:25])
        # Only the middle element of the reversed pairing lines up
        assert sum(results[25:]) == 1
