"""
Solo Parent Backend: Middleware Package
========================================

Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Credential Rate Limit] → [Access Log] → [GZip] → [CORS] → Route Handler

    The request id is set first so rate-limit rejections and access log
    lines carry it.
"""
