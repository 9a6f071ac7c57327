# Routes package init
"""
SubTrack Backend: API Routes Package
=====================================

Route Inventory:
    - auth.py:           POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - subscriptions.py:  GET/POST /api/subscriptions
                         GET/PUT/DELETE /api/subscriptions/{id}
                         GET /api/subscriptions/stats/overview
    - health.py:         GET /health

Routes stay thin: read the request, resolve the caller, call a service,
set headers. Queries and cost math live in services.
"""
