from .signing import (
    TEST_RPC_URL, TEST_SAFE, TEST_CHAIN_ID, TEST_HASH, CONTRACT_SIGNER,
    make_key, make_keys, address_of, sign_hash, eth_sign_hash, ecdsa_signature
)
