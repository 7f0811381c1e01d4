# Services package init
"""
PhotoVerse Backend — Services Layer
=====================================

Service Inventory:
    - PoemProvider (abstract): Interface for image-to-poem providers
    - GeminiPoemService: Primary provider (Google Gemini, structured output)
    - ClaudePoemService: Fallback provider (Anthropic Messages API)
    - RateLimiter: Minimum interval between generations per caller
    - PoemGenerationService: Rate limit → primary → classify → fallback
    - ImageService: Upload validation and base64 encoding
    - share_service: Share text and PDF filename helpers
"""
