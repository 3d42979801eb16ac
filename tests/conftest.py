"""
Pytest fixtures for the Safe signature SDK tests.
"""
import pytest
from typing import Callable, Dict, List, Tuple, Union
from web3.providers.rpc import HTTPProvider

from safesig_sdk._rate_limited_log import reset_rate_limits
from safesig_sdk.encoding import normalize_address, to_bytes
from safesig_sdk.validation import SignatureValidator

from tests.test_helpers import TEST_SAFE, make_keys, address_of


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch):
    """
    Stub every Web3 HTTP call so no DNS / network traffic is triggered.
    Works for all tests because it is autouse.
    """
    def _dummy(self, method, params=None, _=None):
        return {"jsonrpc": "2.0", "id": 1, "result": "0x"}

    monkeypatch.setattr(HTTPProvider, "make_request", _dummy, raising=True)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


Response = Union[bytes, str, Exception, Callable[[bytes], bytes]]


class FakeCaller:
    """
    In-memory contract call capability.

    Responses are keyed by (checksummed address, 4-byte selector). A
    response may be raw bytes, a hex string, an exception to raise, or a
    callable receiving the full call data.
    """

    def __init__(self):
        self.responses: Dict[Tuple[str, bytes], Response] = {}
        self.calls: List[Tuple[str, bytes, object]] = []

    def respond(self, to: str, selector: Union[str, bytes], response: Response) -> None:
        self.responses[(normalize_address(to), to_bytes(selector))] = response

    def call(self, to, data, block="latest"):
        data = to_bytes(data)
        self.calls.append((normalize_address(to), data, block))
        response = self.responses.get((normalize_address(to), data[:4]))
        if response is None:
            return b""
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(data)
        return to_bytes(response)


@pytest.fixture
def fake_caller():
    return FakeCaller()


@pytest.fixture
def validator(fake_caller):
    return SignatureValidator(fake_caller)


@pytest.fixture
def owner_keys():
    """Three deterministic owner keys"""
    return make_keys(3)


@pytest.fixture
def owners(owner_keys):
    return [address_of(k) for k in owner_keys]


@pytest.fixture
def safe_address():
    return TEST_SAFE
