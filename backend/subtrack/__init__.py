"""
SubTrack Backend: Application Package Initializer
==================================================

What: Marks the `subtrack` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (CRUD + Aggregation)     │  ← Ownership scoping, statistics
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes translate HTTP into service calls, services own every query and
    the cost aggregation, models enforce write-time rules, schemas define the
    camelCase JSON contract.
"""

__version__ = "1.0.0"
