"""
Thin web3.py base for contract clients.

Wraps every RPC in UpstreamFailure so services see one error type for
network, node and contract-revert failures. Writes are signed locally with
the configured key (relayer / minter) and wait for the receipt.
"""

from __future__ import annotations

from typing import Any, Callable

from eth_account import Account
from web3 import Web3

from backend_alpacalotto.abis import load_abi
from backend_alpacalotto.core.exceptions import UpstreamFailure
from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger(__name__)

RECEIPT_TIMEOUT_SEC = 120


class Web3Client:
    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        abi_name: str,
        *,
        private_key: str = "",
        timeout_sec: float = 10.0,
    ) -> None:
        self._w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_sec}))
        self.address = Web3.to_checksum_address(contract_address)
        self._contract = self._w3.eth.contract(address=self.address, abi=load_abi(abi_name))
        self._account = Account.from_key(private_key) if private_key else None

    @property
    def can_sign(self) -> bool:
        return self._account is not None

    def _call(self, label: str, build: Callable[[], Any]) -> Any:
        """Run build().call(); argument encoding errors count as call failures too."""
        try:
            return build().call()
        except Exception as e:
            logger.warning("contract_call_failed", call=label, contract=self.address, error=str(e))
            raise UpstreamFailure(f"Contract call {label} failed") from e

    def _transact(self, label: str, build: Callable[[], Any]) -> str:
        """Sign, send and wait for build(); return the transaction hash (0x-hex)."""
        if self._account is None:
            raise UpstreamFailure(f"No signing key configured for {label}")
        sender = self._account.address
        try:
            tx = build().build_transaction(
                {
                    "from": sender,
                    "nonce": self._w3.eth.get_transaction_count(sender, "pending"),
                    "chainId": self._w3.eth.chain_id,
                }
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT_SEC)
        except Exception as e:
            logger.error("contract_transact_failed", call=label, contract=self.address, error=str(e))
            raise UpstreamFailure(f"Transaction {label} failed") from e
        hex_hash = Web3.to_hex(tx_hash)
        if receipt.get("status") != 1:
            logger.error("contract_transact_reverted", call=label, tx_hash=hex_hash)
            raise UpstreamFailure(f"Transaction {label} reverted")
        logger.info("contract_transact_ok", call=label, tx_hash=hex_hash)
        return hex_hash
