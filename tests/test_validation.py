"""
Tests for per-signature validation.
"""
import pytest
from unittest.mock import MagicMock

from safesig_sdk.constants import DEFAULT_CONSTANTS
from safesig_sdk.encoding import decode_uint, encode_word, normalize_address
from safesig_sdk.exceptions import InvalidSignatureLengthError, UnknownSignatureTagError
from safesig_sdk.models import (
    ApprovedHashSignature, DynamicSignature, ECDSASignature, ValidationContext
)
from safesig_sdk.validation import SignatureValidator, validate_signature

from tests.test_helpers import (
    CONTRACT_SIGNER, TEST_HASH, TEST_SAFE, address_of, ecdsa_signature,
    eth_sign_hash, make_key, sign_hash
)

MAGIC = DEFAULT_CONSTANTS.eip1271_magic_value
LEGACY_MAGIC = DEFAULT_CONSTANTS.eip1271_legacy_magic_value
HASH_SELECTOR = DEFAULT_CONSTANTS.is_valid_signature_hash_selector
BYTES_SELECTOR = DEFAULT_CONSTANTS.is_valid_signature_bytes_selector
APPROVED_SELECTOR = DEFAULT_CONSTANTS.approved_hashes_selector


def retag(raw: bytes, tag: int) -> bytes:
    return raw[:64] + bytes([tag])


@pytest.fixture
def context():
    return ValidationContext(data_hash=TEST_HASH, safe_address=TEST_SAFE)


class TestECDSA:
    def test_valid_eip712_signature(self, validator, context):
        key = make_key(1)
        result = validator.validate(ecdsa_signature(key), context)
        assert result.valid
        assert result.validated_signer == address_of(key)
        assert result.error is None

    def test_signer_mismatch_is_invalid(self, validator, context):
        signer_key, claimed_key = make_key(1), make_key(2)
        sig = ECDSASignature(signer=address_of(claimed_key), data=sign_hash(signer_key, TEST_HASH))

        result = validator.validate(sig, context)

        assert not result.valid
        assert result.validated_signer == address_of(signer_key)

    def test_eth_sign_validates_against_prefixed_hash(self, validator, context):
        key = make_key(1)
        raw = eth_sign_hash(key, TEST_HASH)

        assert validator.validate(ECDSASignature(signer=address_of(key), data=raw), context).valid

        relabeled = ECDSASignature(signer=address_of(key), data=retag(raw, raw[64] - 4))
        assert not validator.validate(relabeled, context).valid

    def test_eip712_signature_relabeled_as_eth_sign_fails(self, validator, context):
        key = make_key(1)
        raw = sign_hash(key, TEST_HASH)
        relabeled = ECDSASignature(signer=address_of(key), data=retag(raw, raw[64] + 4))
        assert not validator.validate(relabeled, context).valid

    def test_does_not_need_a_caller(self, context):
        key = make_key(4)
        assert SignatureValidator().validate(ecdsa_signature(key), context).valid

    def test_wrong_length_raises(self, validator, context):
        sig = ECDSASignature(signer=address_of(make_key(1)), data=b"\x1b" * 64)
        with pytest.raises(InvalidSignatureLengthError):
            validator.validate(sig, context)

    def test_non_ecdsa_tag_raises(self, validator, context):
        key = make_key(1)
        sig = ECDSASignature(signer=address_of(key), data=retag(sign_hash(key, TEST_HASH), 1))
        with pytest.raises(UnknownSignatureTagError):
            validator.validate(sig, context)

    def test_unrecoverable_signature_is_soft_failure(self, validator, context):
        sig = ECDSASignature(signer=address_of(make_key(1)), data=bytes(64) + b"\x1b")
        result = validator.validate(sig, context)
        assert not result.valid
        assert result.error is not None


class TestContractSignature:
    def test_hash_shape_accepts_magic(self, validator, fake_caller, context):
        seen = {}

        def respond(data):
            seen["data"] = data
            return MAGIC + bytes(28)

        fake_caller.respond(CONTRACT_SIGNER, HASH_SELECTOR, respond)
        sig = DynamicSignature(signer=CONTRACT_SIGNER, data=b"\xca\xfe")

        result = validator.validate(sig, context)

        assert result.valid
        assert result.validated_signer == sig.signer
        body = seen["data"][4:]
        assert body[:32] == TEST_HASH
        assert decode_uint(body, 1) == 64
        assert decode_uint(body, 2) == 2
        assert body[96:98] == b"\xca\xfe"

    def test_legacy_shape_used_on_request(self, validator, fake_caller):
        fake_caller.respond(CONTRACT_SIGNER, BYTES_SELECTOR, LEGACY_MAGIC + bytes(28))
        context = ValidationContext(data_hash=TEST_HASH, data=b"hello", safe_address=TEST_SAFE, legacy=True)

        result = validator.validate(DynamicSignature(signer=CONTRACT_SIGNER, data=b"\x01"), context)

        assert result.valid
        to, data, _ = fake_caller.calls[0]
        assert data[:4] == BYTES_SELECTOR
        assert decode_uint(data[4:], 2) == len(b"hello")

    @pytest.mark.parametrize("data", [b"", "0x", b"hello"])
    def test_hash_shape_used_when_hash_and_data_given(self, validator, fake_caller, data):
        fake_caller.respond(CONTRACT_SIGNER, HASH_SELECTOR, MAGIC + bytes(28))
        context = ValidationContext(data_hash=TEST_HASH, data=data, safe_address=TEST_SAFE)

        result = validator.validate(DynamicSignature(signer=CONTRACT_SIGNER, data=b"\x01"), context)

        assert result.valid
        to, sent, _ = fake_caller.calls[0]
        assert sent[:4] == HASH_SELECTOR
        assert sent[4:36] == TEST_HASH

    def test_legacy_request_requires_data(self):
        with pytest.raises(ValueError, match="requires data"):
            ValidationContext(data_hash=TEST_HASH, legacy=True)

    def test_legacy_magic_not_accepted_for_hash_shape(self, validator, fake_caller, context):
        fake_caller.respond(CONTRACT_SIGNER, HASH_SELECTOR, LEGACY_MAGIC + bytes(28))
        result = validator.validate(DynamicSignature(signer=CONTRACT_SIGNER, data=b"\x01"), context)
        assert not result.valid
        assert result.error is None

    def test_empty_return_is_invalid(self, validator, context):
        result = validator.validate(DynamicSignature(signer=CONTRACT_SIGNER, data=b"\x01"), context)
        assert not result.valid

    def test_call_failure_is_soft(self, validator, fake_caller, context):
        error = RuntimeError("execution reverted")
        fake_caller.respond(CONTRACT_SIGNER, HASH_SELECTOR, error)

        result = validator.validate(DynamicSignature(signer=CONTRACT_SIGNER, data=b"\x01"), context)

        assert not result.valid
        assert result.error is error
        assert result.validated_signer == normalize_address(CONTRACT_SIGNER)

    def test_repeated_failures_are_logged_once(self, fake_caller, context):
        mock_logger = MagicMock()
        validator = SignatureValidator(fake_caller, logger=mock_logger)
        fake_caller.respond(CONTRACT_SIGNER, HASH_SELECTOR, ConnectionError("node down"))
        sig = DynamicSignature(signer=CONTRACT_SIGNER, data=b"\x01")

        validator.validate(sig, context)
        validator.validate(sig, context)

        assert mock_logger.warning.call_count == 1

    def test_missing_caller_raises(self, context):
        with pytest.raises(ValueError, match="contract caller"):
            SignatureValidator().validate(DynamicSignature(signer=CONTRACT_SIGNER, data=b"\x01"), context)


class TestApprovedHash:
    def test_nonzero_is_approved(self, validator, fake_caller, context):
        fake_caller.respond(TEST_SAFE, APPROVED_SELECTOR, encode_word(1))
        signer = address_of(make_key(1))

        result = validator.validate(ApprovedHashSignature(signer=signer), context)

        assert result.valid
        assert result.validated_signer == signer
        to, data, _ = fake_caller.calls[0]
        assert to == normalize_address(TEST_SAFE)
        assert data == APPROVED_SELECTOR + encode_word(signer) + TEST_HASH

    def test_zero_is_not_approved(self, validator, fake_caller, context):
        fake_caller.respond(TEST_SAFE, APPROVED_SELECTOR, encode_word(0))
        result = validator.validate(ApprovedHashSignature(signer=address_of(make_key(1))), context)
        assert not result.valid
        assert result.error is None

    def test_empty_return_is_not_approved(self, validator, context):
        result = validator.validate(ApprovedHashSignature(signer=address_of(make_key(1))), context)
        assert not result.valid
        assert result.error is None

    def test_call_failure_is_soft(self, validator, fake_caller, context):
        fake_caller.respond(TEST_SAFE, APPROVED_SELECTOR, TimeoutError("timed out"))
        result = validator.validate(ApprovedHashSignature(signer=address_of(make_key(1))), context)
        assert not result.valid
        assert isinstance(result.error, TimeoutError)

    def test_requires_safe_address(self, validator):
        context = ValidationContext(data_hash=TEST_HASH)
        with pytest.raises(ValueError, match="safe_address"):
            validator.validate(ApprovedHashSignature(signer=address_of(make_key(1))), context)

    def test_uses_configured_block(self, fake_caller, context):
        fake_caller.respond(TEST_SAFE, APPROVED_SELECTOR, encode_word(1))
        SignatureValidator(fake_caller, block=123).validate(
            ApprovedHashSignature(signer=address_of(make_key(1))), context
        )
        assert fake_caller.calls[0][2] == 123


def test_unsupported_signature_type_raises(validator, context):
    with pytest.raises(TypeError):
        validator.validate(object(), context)


def test_validate_signature_function(context):
    key = make_key(5)
    assert validate_signature(ecdsa_signature(key), context).valid
