# Middleware package init
"""
PhotoVerse Backend — Middleware Package
========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so every access log line and error response
    carries the same correlation ID.

Generation rate limiting is not a middleware: it is enforced by
PoemGenerationService so it applies to the generate operation only,
whichever surface calls it.
"""
