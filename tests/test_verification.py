from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from eth_account import Account, messages
from eth_utils import to_hex
from web3 import HTTPProvider
from web3.exceptions import BadFunctionCallOutput

from siwe_message import (
    ContractWalletSignatureVerifier,
    DomainMismatch,
    EOASignatureVerifier,
    NonceMismatch,
    SchemeMismatch,
    SignatureError,
    SiweMessageParams,
    SiweVerifier,
    TimeValidationError,
    TimeValidator,
    create_message,
    parse_message,
)
from siwe_message.verification import EIP1271_MAGICVALUE

NOW = datetime(2022, 3, 17, 12, 0, 0, tzinfo=timezone.utc)
ISSUED_AT = NOW - timedelta(minutes=5)


def sign(account, message):
    signed = account.sign_message(messages.encode_defunct(text=message))
    return to_hex(signed.signature)


def tamper(signature):
    flipped = "1" if signature[10] != "1" else "2"
    return signature[:10] + flipped + signature[11:]


class TestMessageVerification:
    account = Account.create()
    other_account = Account.create()

    def params(self, **fields):
        return SiweMessageParams(
            address=self.account.address,
            chain_id=1,
            domain="example.com",
            uri="https://example.com/login",
            issued_at=ISSUED_AT,
            nonce="32891757",
            **fields,
        )

    def verifier(self, **kwargs):
        return SiweVerifier(clock=lambda: NOW, **kwargs)

    def test_valid_signature(self):
        params = self.params()
        message = create_message(params)
        assert self.verifier().verify_or_fail(
            params, message, sign(self.account, message)
        )

    def test_valid_signature_with_every_field(self):
        params = self.params(
            scheme="https",
            statement="Sign in to Example",
            not_before=ISSUED_AT,
            expiration_time=NOW + timedelta(hours=1),
            request_id="req-1",
            resources=["https://example.com/a", "ipfs://bafybeigdyrzt/"],
        )
        message = create_message(params)
        assert self.verifier().verify(params, sign(self.account, message))

    def test_lowercase_address(self):
        params = self.params().replace(address=self.account.address.lower())
        message = create_message(params)
        assert self.verifier().verify(params, sign(self.account, message))

    def test_expired(self):
        params = self.params(expiration_time=NOW - timedelta(seconds=1))
        message = create_message(params)
        with pytest.raises(TimeValidationError) as exc_info:
            self.verifier().verify_or_fail(params, message, sign(self.account, message))
        assert len(exc_info.value.conditions) == 1
        assert "expired" in exc_info.value.conditions[0]

    def test_expires_exactly_now(self):
        params = self.params(expiration_time=NOW)
        message = create_message(params)
        with pytest.raises(TimeValidationError):
            self.verifier().verify_or_fail(params, message, sign(self.account, message))

    def test_not_yet_valid(self):
        params = self.params(not_before=NOW + timedelta(seconds=1))
        message = create_message(params)
        with pytest.raises(TimeValidationError) as exc_info:
            self.verifier().verify_or_fail(params, message, sign(self.account, message))
        assert "not valid before" in exc_info.value.conditions[0]

    def test_valid_from_exactly_now(self):
        params = self.params(not_before=NOW)
        message = create_message(params)
        assert self.verifier().verify_or_fail(
            params, message, sign(self.account, message)
        )

    def test_explicit_timestamp(self):
        params = self.params(expiration_time=NOW + timedelta(minutes=1))
        message = create_message(params)
        signature = sign(self.account, message)
        verifier = self.verifier()
        assert verifier.verify(params, signature, timestamp=NOW)
        assert not verifier.verify(
            params, signature, timestamp=NOW + timedelta(minutes=1)
        )

    def test_naive_timestamp_is_utc(self):
        params = self.params(expiration_time=NOW + timedelta(minutes=1))
        message = create_message(params)
        assert self.verifier().verify(
            params,
            sign(self.account, message),
            timestamp=(NOW + timedelta(minutes=2)).replace(tzinfo=None),
        ) is False

    def test_tampered_signature(self):
        params = self.params()
        signature = tamper(sign(self.account, create_message(params)))
        assert self.verifier().verify(params, signature) is False

    def test_malformed_signature(self):
        params = self.params()
        assert self.verifier().verify(params, "0xnothex") is False
        assert self.verifier().verify(params, "0x1234") is False

    def test_wrong_signer(self):
        params = self.params()
        message = create_message(params)
        with pytest.raises(SignatureError):
            self.verifier().verify_or_fail(
                params, message, sign(self.other_account, message)
            )

    def test_signature_over_another_message(self):
        params = self.params()
        other = create_message(self.params(statement="Something else"))
        with pytest.raises(SignatureError):
            self.verifier().verify_or_fail(
                params, create_message(params), sign(self.account, other)
            )

    def test_bindings(self):
        params = self.params(scheme="https")
        message = create_message(params)
        signature = sign(self.account, message)
        verifier = self.verifier()
        assert verifier.verify_or_fail(
            params,
            message,
            signature,
            scheme="https",
            domain="example.com",
            nonce="32891757",
        )
        with pytest.raises(SchemeMismatch):
            verifier.verify_or_fail(params, message, signature, scheme="http")
        with pytest.raises(DomainMismatch):
            verifier.verify_or_fail(params, message, signature, domain="evil.com")
        with pytest.raises(NonceMismatch):
            verifier.verify_or_fail(params, message, signature, nonce="abcdefgh")
        assert verifier.verify(params, signature, nonce="abcdefgh") is False


class TestMessageTextVerification:
    account = Account.create()

    def message(self, **fields):
        return create_message(
            SiweMessageParams(
                address=self.account.address,
                chain_id=1,
                domain="example.com",
                uri="https://example.com/login",
                issued_at=ISSUED_AT,
                **fields,
            )
        )

    def test_valid_message(self):
        message = self.message(statement="Sign in to Example")
        verifier = SiweVerifier(clock=lambda: NOW)
        assert verifier.verify_message(message, sign(self.account, message))

    def test_expired_message(self):
        message = self.message(expiration_time=NOW - timedelta(minutes=1))
        verifier = SiweVerifier(clock=lambda: NOW)
        assert verifier.verify_message(message, sign(self.account, message)) is False

    def test_malformed_message(self):
        message = self.message() + "\n"
        verifier = SiweVerifier(clock=lambda: NOW)
        assert verifier.verify_message(message, sign(self.account, message)) is False

    def test_original_text_is_verified(self):
        message = self.message()
        calls = []

        class RecordingVerifier:
            def verify(self, message, signature, address):
                calls.append((message, signature, address))
                return True

        verifier = SiweVerifier(RecordingVerifier(), clock=lambda: NOW)
        assert verifier.verify_message(message, "0xsignature")
        assert calls == [(message, "0xsignature", self.account.address)]

    def test_verifier_errors_are_reported_as_false(self):
        class FailingVerifier:
            def verify(self, message, signature, address):
                raise RuntimeError("unavailable")

        message = self.message()
        params = parse_message(message)
        verifier = SiweVerifier(FailingVerifier(), clock=lambda: NOW)
        with pytest.raises(RuntimeError):
            verifier.verify_or_fail(params, message, "0x00")
        assert verifier.verify(params, "0x00") is False
        assert verifier.verify_message(message, "0x00") is False


class TestTimeValidator:
    def test_every_violation_is_reported(self):
        params = SimpleNamespace(
            issued_at=None,
            not_before=NOW + timedelta(minutes=1),
            expiration_time=NOW - timedelta(minutes=1),
        )
        conditions = TimeValidator.violations(params, NOW)
        assert len(conditions) == 3
        with pytest.raises(TimeValidationError) as exc_info:
            TimeValidator.validate_or_fail(params, NOW)
        assert exc_info.value.conditions == conditions

    def test_no_window(self):
        params = SimpleNamespace(
            issued_at=ISSUED_AT, not_before=None, expiration_time=None
        )
        assert TimeValidator.violations(params, NOW) == []


class TestSignatureVerifiers:
    account = Account.create()

    def test_recover(self):
        signature = sign(self.account, "hello")
        assert EOASignatureVerifier().recover("hello", signature) == (
            self.account.address
        )

    def test_recover_malformed(self):
        assert EOASignatureVerifier().recover("hello", "0x1234") is None

    def contract_verifier(self, response=None, error=None):
        verifier = ContractWalletSignatureVerifier(
            HTTPProvider(endpoint_uri="http://localhost:8545")
        )
        verifier.w3 = MagicMock()
        is_valid_signature = (
            verifier.w3.eth.contract.return_value.caller.isValidSignature
        )
        is_valid_signature.return_value = response
        is_valid_signature.side_effect = error
        return verifier

    def test_contract_wallet_accepts_magic_value(self):
        wallet = Account.create().address
        verifier = self.contract_verifier(response=bytes.fromhex(EIP1271_MAGICVALUE))
        assert verifier.verify("hello", sign(self.account, "hello"), wallet)
        verifier.w3.eth.contract.assert_called_once()

    def test_contract_wallet_rejects_other_value(self):
        wallet = Account.create().address
        verifier = self.contract_verifier(response=bytes.fromhex("ffffffff"))
        assert not verifier.verify("hello", sign(self.account, "hello"), wallet)

    def test_contract_wallet_without_eip1271(self):
        wallet = Account.create().address
        verifier = self.contract_verifier(error=BadFunctionCallOutput("no code"))
        assert not verifier.verify("hello", sign(self.account, "hello"), wallet)

    def test_contract_wallet_prefers_recovery(self):
        verifier = self.contract_verifier(error=BadFunctionCallOutput("no code"))
        assert verifier.verify(
            "hello", sign(self.account, "hello"), self.account.address
        )
        verifier.w3.eth.contract.assert_not_called()
