"""
PhotoVerse Backend — Application Package Initializer
====================================================

What: Turns a photo into a poem through Gemini, with Claude as fallback.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   PoemGenerationService (orchestr.) │  ← rate limit, fallback policy
    ├─────────────────────────────────────┤
    │   Provider adapters (Gemini/Claude) │  ← wire formats, error mapping
    ├─────────────────────────────────────┤
    │        Schemas (Poem, requests)     │  ← validation of untrusted output
    └─────────────────────────────────────┘

    There is no persistence layer: requests are stateless apart from the
    in-memory rate limiter.
"""

__version__ = "1.0.0"
