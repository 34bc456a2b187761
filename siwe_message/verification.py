"""Verification of signed SIWE messages."""

import logging
from datetime import datetime
from typing import Callable, Optional

import eth_utils
from eth_account import Account
from eth_account.messages import SignableMessage, _hash_eip191_message, encode_defunct
from eth_keys.exceptions import BadSignature
from eth_typing import ChecksumAddress
from typing_extensions import Protocol
from web3 import HTTPProvider, Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from .errors import DomainMismatch, NonceMismatch, SchemeMismatch, SignatureError
from .message import create_message, parse_message
from .params import SiweMessageParams
from .timestamps import utc_now
from .validators import TimeValidator

logger = logging.getLogger(__name__)

EIP1271_CONTRACT_ABI = [
    {
        "inputs": [
            {"internalType": "bytes32", "name": " _message", "type": "bytes32"},
            {"internalType": "bytes", "name": " _signature", "type": "bytes"},
        ],
        "name": "isValidSignature",
        "outputs": [{"internalType": "bytes4", "name": "", "type": "bytes4"}],
        "stateMutability": "view",
        "type": "function",
    }
]
EIP1271_MAGICVALUE = "1626ba7e"


class SignatureVerifier(Protocol):
    """Decide whether `signature` over `message` was made for `address`."""

    def verify(self, message: str, signature: str, address: str) -> bool:
        """Return True if `signature` over `message` was made for `address`."""
        ...


class EOASignatureVerifier:
    """Verify EIP-191 personal message signatures of externally owned accounts.

    Addresses are compared once normalised to their EIP-55 form, so the case of
    the expected address does not matter here. Mixed-case addresses are already
    required to carry a valid checksum when the message is constructed.
    """

    def recover(self, message: str, signature: str) -> Optional[ChecksumAddress]:
        """Recover the address that signed `message`, None if it cannot be."""
        try:
            return Account.recover_message(
                encode_defunct(text=message), signature=signature
            )
        except (
            ValueError,
            TypeError,
            BadSignature,
            eth_utils.exceptions.ValidationError,
        ) as e:
            logger.debug("Could not recover the signer of the message: %s", e)
            return None

    def verify(self, message: str, signature: str, address: str) -> bool:
        """Check that the EIP-191 signer of `message` is `address`."""
        recovered = self.recover(message, signature)
        return recovered is not None and recovered == eth_utils.to_checksum_address(
            address
        )


class ContractWalletSignatureVerifier(EOASignatureVerifier):
    """Also accept signatures of Smart Contract wallets implementing EIP-1271."""

    def __init__(self, provider: HTTPProvider):
        """Create the verifier.

        :param provider: A Web3 provider able to perform a contract check.
        """
        self.w3 = Web3(provider=provider)

    def verify(self, message: str, signature: str, address: str) -> bool:
        """Recover the signer, then fall back to an EIP-1271 contract call."""
        if super().verify(message, signature, address):
            return True
        return check_contract_wallet_signature(
            address=eth_utils.to_checksum_address(address),
            message=encode_defunct(text=message),
            signature=signature,
            w3=self.w3,
        )


def check_contract_wallet_signature(
    address: ChecksumAddress, message: SignableMessage, signature: str, w3: Web3
) -> bool:
    """Call the EIP-1271 method for a Smart Contract wallet.

    :param address: The address of the contract
    :param message: The EIP-4361 formatted message
    :param signature: The EIP-1271 signature
    :param w3: A Web3 provider able to perform a contract check.
    :return: True if the signature is valid per EIP-1271.
    """
    contract = w3.eth.contract(address=address, abi=EIP1271_CONTRACT_ABI)
    hash_ = _hash_eip191_message(message)
    try:
        response = contract.caller.isValidSignature(
            hash_, eth_utils.decode_hex(signature)
        )
    except (BadFunctionCallOutput, ContractLogicError, ValueError) as e:
        logger.debug("EIP-1271 check failed for %s: %s", address, e)
        return False
    return bytes(response).hex() == EIP1271_MAGICVALUE


class SiweVerifier:
    """Verify signed messages against their time window and signature.

    `verify_or_fail` raises a typed error describing why a message is rejected,
    `verify` and `verify_message` only report whether it is accepted.
    """

    def __init__(
        self,
        signature_verifier: Optional[SignatureVerifier] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Create the verifier.

        :param signature_verifier: Checks the signature against the message and
        address, EIP-191 recovery of externally owned accounts by default.
        :param clock: Source of the current time for the validity window.
        """
        if signature_verifier is None:
            signature_verifier = EOASignatureVerifier()
        self.signature_verifier = signature_verifier
        self.clock = clock

    def verify_or_fail(
        self,
        params: SiweMessageParams,
        message: str,
        signature: str,
        *,
        scheme: Optional[str] = None,
        domain: Optional[str] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Verify the validity of the message and its signature.

        :param params: Parameters of the signed message.
        :param message: The exact text that was signed.
        :param signature: Signature to check against the message.
        :param scheme: Scheme expected to be in the message.
        :param domain: Domain expected to be in the message.
        :param nonce: Nonce expected to be in the message.
        :param timestamp: Time used to check the validity window, the clock's
        current time by default.
        :return: True if the message is valid, raises an exception otherwise.
        :raises TimeValidationError: outside of the validity window.
        :raises SignatureError: the signature does not match.
        """
        if scheme is not None and params.scheme != scheme:
            raise SchemeMismatch()
        if domain is not None and params.domain != domain:
            raise DomainMismatch()
        if nonce is not None and params.nonce != nonce:
            raise NonceMismatch()

        TimeValidator.validate_or_fail(
            params, self.clock() if timestamp is None else timestamp
        )

        if not self.signature_verifier.verify(message, signature, params.address):
            raise SignatureError("Signature invalid")
        return True

    def verify(
        self,
        params: SiweMessageParams,
        signature: str,
        *,
        scheme: Optional[str] = None,
        domain: Optional[str] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Check a signature over the message derived from `params`.

        Never raises, any failure results in False.
        """
        try:
            return self.verify_or_fail(
                params,
                create_message(params),
                signature,
                scheme=scheme,
                domain=domain,
                nonce=nonce,
                timestamp=timestamp,
            )
        except Exception as e:
            logger.debug("SIWE verification of %s failed: %r", params.address, e)
            return False

    def verify_message(
        self,
        message: str,
        signature: str,
        *,
        scheme: Optional[str] = None,
        domain: Optional[str] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Parse `message` and check `signature` over its original text.

        Never raises, any failure results in False.
        """
        try:
            return self.verify_or_fail(
                parse_message(message),
                message,
                signature,
                scheme=scheme,
                domain=domain,
                nonce=nonce,
                timestamp=timestamp,
            )
        except Exception as e:
            logger.debug("SIWE message verification failed: %r", e)
            return False
