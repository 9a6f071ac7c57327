# Services package init
"""
SubTrack Backend: Services Layer
=================================

Service Inventory:
    - AuthService:          registration, login, JWT issue/verify
    - SubscriptionService:  owner-scoped CRUD, soft delete, statistics overview
    - stats:                pure cost aggregation (totals, category breakdown, renewals)

Services are stateless singletons; the database session is passed into
every call.
"""
