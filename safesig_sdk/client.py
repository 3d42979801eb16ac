"""
SafeClient - signature hashing, packing and authorization for one Safe.
"""
import logging
import os
from typing import Any, List, Optional, Sequence, Union

from .account_state import check_n_signatures, get_owners, get_threshold
from .constants import DEFAULT_CONSTANTS, ProtocolConstants
from .eip712 import domain_separator, message_hash, transaction_hash
from .encoding import normalize_address, to_bytes32
from .models import (
    AuthorizationResult, CheckResult, SafeTransaction, Signature,
    ValidationContext, ValidationResult
)
from .quorum import authorize
from .signatures import decode_signatures, encode_signatures
from .transport import RPC_URL_ENV, Web3Caller
from .validation import BlockIdentifier, ContractCaller, SignatureValidator


class SafeClient:
    """
    Client for working with signatures of a single Safe.

    This client handles:
    1. Computing transaction and message hashes for the Safe
    2. Packing and unpacking signature bytes
    3. Checking signatures against the Safe's owners and threshold

    Hashing and packing never touch the network. Owner/threshold reads and
    approved-hash or contract-signature checks go through ``caller``.
    """

    def __init__(
        self,
        safe_address: str,
        chain_id: int,
        caller: Optional[ContractCaller] = None,
        rpc_url: Optional[str] = None,
        constants: ProtocolConstants = DEFAULT_CONSTANTS,
        max_workers: Optional[int] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the SafeClient

        Args:
            safe_address: Address of the Safe contract
            chain_id: EIP-155 chain ID the Safe is deployed on
            caller: Contract call capability; built from rpc_url when omitted
            rpc_url: Ethereum RPC endpoint (or $SAFESIG_RPC_URL) used when no caller is given
            constants: Protocol constant table
            max_workers: Thread pool size for concurrent signature validation
            logger: Optional logger instance

        Raises:
            ValueError: If safe_address is invalid or chain_id is not positive
        """
        if chain_id <= 0:
            raise ValueError(f"chain_id must be positive, got {chain_id}")

        self.safe_address = normalize_address(safe_address)
        self.chain_id = chain_id
        self.constants = constants
        self.max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)
        self._caller = caller
        self._rpc_url = rpc_url

    @property
    def caller(self) -> ContractCaller:
        """
        Contract call capability, created lazily from the RPC URL.

        Raises:
            ValueError: If no caller was given and no RPC URL is configured
        """
        if self._caller is None:
            self._caller = Web3Caller(rpc_url=self._rpc_url, logger=self.logger)
        return self._caller

    @property
    def domain_separator(self) -> bytes:
        return domain_separator(self.safe_address, self.chain_id, self.constants)

    def build_transaction(self, to: str, value: int = 0, data: Union[str, bytes] = b"", **fields: Any) -> SafeTransaction:
        """Build a SafeTransaction bound to this Safe and chain."""
        return SafeTransaction(
            safe_address=self.safe_address,
            chain_id=self.chain_id,
            to=to,
            value=value,
            data=data,
            **fields
        )

    def transaction_hash(self, tx: Optional[SafeTransaction] = None, **fields: Any) -> bytes:
        """
        Hash a transaction for signing.

        Args:
            tx: Prebuilt transaction; otherwise ``fields`` are passed to build_transaction
        """
        if tx is None:
            tx = self.build_transaction(**fields)
        return transaction_hash(tx, self.constants)

    def message_hash(self, message: Union[str, bytes]) -> bytes:
        return message_hash(self.safe_address, self.chain_id, message, self.constants)

    def encode_signatures(self, signatures: Sequence[Signature]) -> bytes:
        return encode_signatures(signatures)

    def decode_signatures(self, encoded: Union[str, bytes], data_hash: Union[str, bytes]) -> List[Signature]:
        return decode_signatures(encoded, data_hash)

    def get_owners(self, block: BlockIdentifier = "latest") -> List[str]:
        return get_owners(self.caller, self.safe_address, block, self.constants)

    def get_threshold(self, block: BlockIdentifier = "latest") -> int:
        return get_threshold(self.caller, self.safe_address, block, self.constants)

    def _validator(self, block: BlockIdentifier) -> SignatureValidator:
        return SignatureValidator(self._caller_or_none(), self.constants, block, self.logger)

    def _caller_or_none(self) -> Optional[ContractCaller]:
        # ECDSA-only validation works without a node
        if self._caller is None and not (self._rpc_url or os.environ.get(RPC_URL_ENV)):
            return None
        return self.caller

    def validate_signature(
        self,
        signature: Signature,
        data_hash: Union[str, bytes],
        data: Optional[bytes] = None,
        block: BlockIdentifier = "latest",
        legacy: bool = False
    ) -> ValidationResult:
        """Validate a single signature against a hash signed for this Safe."""
        context = ValidationContext(
            data_hash=data_hash, data=data, safe_address=self.safe_address, legacy=legacy
        )
        return self._validator(block).validate(signature, context)

    def validate_signatures(
        self,
        signatures: Union[Sequence[Signature], str, bytes],
        data_hash: Union[str, bytes],
        data: Optional[Union[str, bytes]] = None,
        owners: Optional[Sequence[str]] = None,
        threshold: Optional[int] = None,
        block: BlockIdentifier = "latest",
        legacy: bool = False
    ) -> AuthorizationResult:
        """
        Check whether signatures authorize ``data_hash`` for this Safe.

        Args:
            signatures: Signature objects or packed signature bytes
            data_hash: Hash the owners signed
            data: Optional pre-image of data_hash
            owners: Owner set; read from the Safe when omitted
            threshold: Required signature count; read from the Safe when omitted
            block: Block at which on-chain reads are evaluated
            legacy: Check contract signers with isValidSignature(bytes,bytes) over data

        Returns:
            AuthorizationResult with per-signature detail

        Raises:
            ValueError: If the configured RPC URL is rejected
        """
        if owners is None:
            owners = self.get_owners(block)
        if threshold is None:
            threshold = self.get_threshold(block)

        result = authorize(
            self._validator(block),
            signatures,
            owners,
            threshold,
            data_hash,
            data=data,
            safe_address=self.safe_address,
            max_workers=self.max_workers,
            legacy=legacy
        )
        if not result.valid:
            self.logger.info(
                f"Signatures do not authorize 0x{to_bytes32(data_hash).hex()} "
                f"for {self.safe_address}: {len(result.counted_signers)}/{threshold}"
            )
        return result

    def check_n_signatures(
        self,
        data_hash: Union[str, bytes],
        data: Union[str, bytes],
        signatures: Union[Sequence[Signature], str, bytes],
        required_signatures: int,
        block: BlockIdentifier = "latest"
    ) -> CheckResult:
        """Let the Safe contract verify the signatures on-chain."""
        return check_n_signatures(
            self.caller, self.safe_address, data_hash, data, signatures,
            required_signatures, block, self.constants
        )
