"""
web3.py implementation of the contract call capability.
"""
import logging
import os
import urllib.parse
from typing import Optional

from web3 import Web3

from .encoding import normalize_address, to_bytes
from .validation import BlockIdentifier

RPC_URL_ENV = "SAFESIG_RPC_URL"


def validate_rpc_url(rpc_url: str) -> None:
    """
    Reject plain-http RPC endpoints unless they are local.

    Raises:
        ValueError: If the URL doesn't use https and isn't localhost/127.0.0.1
    """
    parsed = urllib.parse.urlparse(rpc_url)
    host = parsed.netloc.split(':')[0] if parsed.netloc else ''
    is_local = host in ('localhost', '127.0.0.1')
    if parsed.scheme != 'https' and not is_local:
        raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")


class Web3Caller:
    """
    Performs read-only ``eth_call`` requests through web3.py.

    Failures (reverts, connection errors) propagate as web3 exceptions; the
    signature validator turns them into soft results. Retries and timeouts
    belong to the provider.
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        w3: Optional[Web3] = None,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the caller

        Args:
            rpc_url: Ethereum RPC endpoint URL; defaults to $SAFESIG_RPC_URL
            w3: Pre-configured Web3 instance (takes precedence over rpc_url)
            timeout: HTTP request timeout in seconds
            logger: Optional logger instance

        Raises:
            ValueError: If no endpoint is available or the URL is not https
        """
        self.logger = logger or logging.getLogger(__name__)
        if w3 is not None:
            self.w3 = w3
            self.rpc_url = rpc_url
            return

        rpc_url = rpc_url or os.environ.get(RPC_URL_ENV)
        if not rpc_url:
            raise ValueError(f"Either rpc_url, w3 or ${RPC_URL_ENV} must be provided")
        validate_rpc_url(rpc_url)

        self.rpc_url = rpc_url
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    def call(self, to: str, data: bytes, block: BlockIdentifier = "latest") -> bytes:
        """
        Execute ``eth_call`` and return the raw result bytes.

        Args:
            to: Contract address
            data: Call data
            block: Block tag or number
        """
        tx = {"to": normalize_address(to), "data": "0x" + to_bytes(data).hex()}
        self.logger.debug(f"eth_call to {tx['to']} selector={tx['data'][:10]} block={block}")
        return bytes(self.w3.eth.call(tx, block))
