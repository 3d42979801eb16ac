#!/usr/bin/env python3
"""
Simple example of using the Safe signature SDK.
"""
import os

from eth_account import Account

from safesig_sdk import ECDSASignature, SafeClient


def main():
    """
    Demonstrate basic usage of the SafeClient.

    This example shows how to:
    1. Hash a Safe transaction
    2. Sign it with an owner key and pack the signatures
    3. Check the signatures against the Safe's owners and threshold
    """
    # Read configuration from environment
    SAFE_ADDRESS = os.environ.get("SAFE_ADDRESS")
    CHAIN_ID = int(os.environ.get("CHAIN_ID", "11155111"))
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")

    # Verify configuration
    if not SAFE_ADDRESS:
        print("ERROR: SAFE_ADDRESS environment variable is required")
        return

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    # RPC endpoint comes from $SAFESIG_RPC_URL
    client = SafeClient(SAFE_ADDRESS, CHAIN_ID)

    tx = client.build_transaction(
        to="0x742d35Cc6634C0532925a3b844Bc9e7595ed6cC5",
        value=10**16,  # 0.01 ETH
        nonce=0
    )
    safe_tx_hash = client.transaction_hash(tx)
    print(f"Safe transaction hash: 0x{safe_tx_hash.hex()}")

    owner = Account.from_key(PRIVATE_KEY)
    signed = owner.unsafe_sign_hash(safe_tx_hash)
    signature = ECDSASignature(signer=owner.address, data=bytes(signed.signature))
    packed = client.encode_signatures([signature])
    print(f"Packed signatures: 0x{packed.hex()}")

    try:
        result = client.validate_signatures(packed, safe_tx_hash)
        print(f"Authorized: {result.valid} ({len(result.counted_signers)}/{result.threshold})")
        for failure in result.failures:
            print(f"Rejected {failure.signature.signer}: {failure.error}")

    except Exception as e:
        print(f"Error checking signatures: {str(e)}")


if __name__ == "__main__":
    main()
