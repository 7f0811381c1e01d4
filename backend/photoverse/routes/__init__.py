# Routes package init
"""
PhotoVerse Backend — API Routes Package
=========================================

Route Inventory:
    - poems.py:    POST /api/poems     (upload photo, generate poem)
    - options.py:  GET  /api/options   (style and mood choices with labels)
    - health.py:   GET  /health        (service health check)

Routes stay thin: read the request, call a service, shape the response.
"""
