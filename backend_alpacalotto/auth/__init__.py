"""
Request authorization: wallet signature recovery.
"""

from backend_alpacalotto.auth.signatures import SignatureVerifier, recover_signer

__all__ = ["SignatureVerifier", "recover_signer"]
