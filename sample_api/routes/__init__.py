"""
Sample API - Routes Package
===========================

Route Inventory:
    - samples.py: the dispatch table for /samples (served under api_prefix)
    - health.py:  GET /health (plain FastAPI router)

Routes are declarations only: which middleware run, in which order, for
which (method, path). Parsing lives in validators, work in controllers and
services.
"""
