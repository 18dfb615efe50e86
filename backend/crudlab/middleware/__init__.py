"""
CrudLab Backend — Middleware Package
=====================================

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    Rate limiting runs first so abusive requests are rejected before any
    other work. The request ID is set before the access log line is written
    so every line carries it.
"""
