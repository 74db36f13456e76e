"""
HTTP API: FastAPI app factory, routers and request models.
"""
