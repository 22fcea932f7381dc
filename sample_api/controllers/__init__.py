"""
Sample API - Controllers
========================

Last step of every route chain: call the service with the validated input and
answer with a success envelope. Errors raised by services are turned into
failure envelopes by the chain executor.
"""

from sample_api.controllers.sample import SampleController, sample_controller

__all__ = ["SampleController", "sample_controller"]
