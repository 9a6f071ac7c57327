# Middleware package init
"""
SubTrack Backend: Middleware Package
=====================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Rate limit rejects before any other work happens
    - Request ID is set before the logging middleware reads it
    - Logging sees the final status code, including handled errors
"""
