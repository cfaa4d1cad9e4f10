"""
ChatGate Backend — Application Package Initializer
==================================================

What: Marks the `chatgate` directory as a Python package.
Why:  Enables module imports like `from chatgate.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │    Services (Entitlement, Webhook)  │  ← Gating, reconciliation, orchestration
    ├─────────────────────────────────────┤
    │   External clients (Supabase Auth,  │  ← Identity and inference by contract only
    │   Gemini)                           │
    ├─────────────────────────────────────┤
    │     Profile store (async SQLAlchemy)│  ← One profile row per identity
    └─────────────────────────────────────┘

    Routes never touch SQL or external APIs directly; they call services,
    and services raise exceptions from `chatgate.exceptions` that the global
    handlers in `chatgate.main` turn into HTTP responses.
"""

__version__ = "1.0.0"
