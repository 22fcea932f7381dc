"""
Sample API - Services Layer
===========================

What:  Business logic between controllers (envelopes) and the database.

Service Inventory:
    - auth.py:           check_token / check_role chain middleware, token issuing
    - sample_service.py: Sample CRUD, soft delete and restore

Services never build envelopes except for the auth checks, which sit in the
route chain directly and answer 401/403 themselves.
"""
