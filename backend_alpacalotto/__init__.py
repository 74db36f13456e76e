"""
Backend AlpacaLotto: API server for the AlpacaLotto lottery dApp.

Serves lottery reads relayed from the AlpacaLotto contract, picks the cheapest
ERC-20 token to pay gas with, manages time-bounded session keys, and handles
referral rewards. Modular layout: optimizer, session keys, lottery adapter,
referrals, API server.
"""

__version__ = "1.0.0"
