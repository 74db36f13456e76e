"""
Wallet signature checks for mutating endpoints.

Each action has a canonical personal-sign (EIP-191) message; the signer is
recovered with eth-account and must match the wallet the request acts for.
Missing or mismatched signatures raise AuthorizationPending. With
allow_unsigned=True (development only) checks are skipped with a warning.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct

from backend_alpacalotto.core.addresses import same_address
from backend_alpacalotto.core.exceptions import AuthorizationPending
from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger(__name__)


def session_key_create_message(session_key_address: str | None, duration: int) -> str:
    target = session_key_address or "for this wallet"
    return f"AlpacaLotto: Activate session key {target} for {duration} seconds."


def session_key_revoke_message(session_key_address: str | None) -> str:
    target = session_key_address or "for this wallet"
    return f"AlpacaLotto: Revoke session key {target}."


def purchase_message(lottery_id: int, token_address: str, quantity: int) -> str:
    return f"AlpacaLotto: Purchase {quantity} tickets for lottery {lottery_id} with {token_address}."


def claim_message(lottery_id: int) -> str:
    return f"AlpacaLotto: Claim prize for lottery {lottery_id}."


def recover_signer(message: str, signature: str) -> str | None:
    """Address that produced signature over message, or None if it cannot be recovered."""
    try:
        return Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:  # malformed hex, bad length, invalid v/r/s
        logger.info("signature_recover_failed", error=str(e))
        return None


class SignatureVerifier:
    """Checks that a request was signed by one of the expected wallets."""

    def __init__(self, allow_unsigned: bool = False) -> None:
        self.allow_unsigned = allow_unsigned
        if allow_unsigned:
            logger.warning("signature_verification_disabled", hint="ALLOW_UNSIGNED_REQUESTS is on; never use in production")

    def verify(self, message: str, signature: str | None, *expected: str | None) -> str | None:
        """
        Return the expected address that signed message.

        Raises:
            AuthorizationPending: signature missing or from another wallet.
        """
        if self.allow_unsigned:
            logger.warning("signature_check_skipped", message=message)
            return None
        if not signature:
            raise AuthorizationPending("Signature is required")
        signer = recover_signer(message, signature)
        for address in expected:
            if signer is not None and same_address(signer, address):
                return address
        logger.warning("signature_mismatch", signer=signer, expected=[a for a in expected if a])
        raise AuthorizationPending("Signature does not match wallet")
