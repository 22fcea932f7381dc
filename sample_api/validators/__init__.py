"""
Sample API - Request Validators
===============================

Chain middleware that parse path params, query and body with pydantic models
and hand the result to the controller through RequestContext.payload.
They never touch the database.
"""

from sample_api.validators.sample import SampleValidator, sample_validator

__all__ = ["SampleValidator", "sample_validator"]
