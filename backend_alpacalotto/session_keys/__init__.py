"""
Session keys: time-bounded authorizations for signature-free transactions.
"""

from backend_alpacalotto.session_keys.manager import SessionKeyManager
from backend_alpacalotto.session_keys.models import SessionKey, SessionKeyState

__all__ = ["SessionKey", "SessionKeyManager", "SessionKeyState"]
