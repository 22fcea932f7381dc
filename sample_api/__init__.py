"""
Sample API - Application Package Initializer
=============================================

What: Marks the `sample_api` directory as a Python package.
Why:  Enables module imports like `from sample_api.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    Requests for the Sample resource travel through an explicit route table
    and an ordered middleware chain instead of framework decorators:

    ┌─────────────────────────────────────┐
    │   FastAPI shell (main.py)           │  ← lifespan, HTTP middleware, /health, docs
    ├─────────────────────────────────────┤
    │   Route table + chain (routing/)    │  ← method/path matching, Proceed | Respond fold
    ├─────────────────────────────────────┤
    │   Auth, Validators, Controllers     │  ← one middleware per concern
    ├─────────────────────────────────────┤
    │   Services (persistence)            │  ← async SQLAlchemy, soft delete
    └─────────────────────────────────────┘

    Route declarations live in routes/samples.py; everything they reference is
    a plain async callable taking a RequestContext.
"""

__version__ = "1.0.0"
