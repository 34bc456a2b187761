"""Library for EIP-4361 Sign-In with Ethereum messages."""

import logging

# flake8: noqa: F401
from .builder import SiweMessageParamsBuilder
from .errors import (
    DomainMismatch,
    InvalidFieldError,
    NonceMismatch,
    ParseError,
    SchemeMismatch,
    SignatureError,
    SiweError,
    TimeValidationError,
    VerificationError,
)
from .message import create_message, parse_message
from .params import SiweMessageParams, generate_nonce
from .timestamps import datetime_to_iso8601, iso8601_to_datetime, utc_now
from .validators import FieldValidator, TimeValidator
from .verification import (
    ContractWalletSignatureVerifier,
    EOASignatureVerifier,
    SignatureVerifier,
    SiweVerifier,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())
