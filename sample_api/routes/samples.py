"""
Sample API - Sample Routes
==========================

What:  The route table for /samples: one line per route, read top to bottom.
How:   Each route is (method, pattern, *chain). Chains run left to right and
       stop at the first Respond.

    POST    /samples                          validate → create
    GET     /samples                          validate → list
    GET     /samples/:sampleId                validate → details
    PUT     /samples/:sampleId                validate → update
    DELETE  /samples/:sampleId                validate → delete
    POST    /samples/:sampleId/secureAction   token → role → validate → restore

CRUD routes carry no auth; only the secured action checks token and role.
"""

from sample_api.config import settings
from sample_api.controllers.sample import sample_controller
from sample_api.routing.table import RouteDoc, RouteTable
from sample_api.schemas.sample import (
    SampleCreate,
    SampleListQuery,
    SampleListResult,
    SamplePath,
    SampleRead,
    SampleUpdate,
    SecureActionRequest,
)
from sample_api.services.auth import check_role, check_token
from sample_api.validators.sample import sample_validator

SAMPLES_TAG = "Samples"


def build_sample_routes() -> RouteTable:
    router = RouteTable(
        prefix="/samples",
        tag=SAMPLES_TAG,
        tag_description="Sample management",
        poll_interval=settings.disconnect_poll_interval,
    )

    router.post(
        "",
        sample_validator.create,
        sample_controller.create,
        doc=RouteDoc(
            summary="Create a sample",
            request_model=SampleCreate,
            result_model=SampleRead,
            result_description="Sample created",
        ),
    )
    router.get(
        "",
        sample_validator.list,
        sample_controller.list,
        doc=RouteDoc(
            summary="List samples",
            description="Newest first. Soft-deleted samples are hidden unless includeInactive=true.",
            query_model=SampleListQuery,
            result_model=SampleListResult,
            result_description="One page of samples",
        ),
    )
    router.get(
        "/:sampleId",
        sample_validator.details,
        sample_controller.details,
        doc=RouteDoc(
            summary="Get sample details",
            description="Soft-deleted samples are returned with isActive=false.",
            path_model=SamplePath,
            result_model=SampleRead,
            result_description="Sample details",
        ),
    )
    router.put(
        "/:sampleId",
        sample_validator.update,
        sample_controller.update,
        doc=RouteDoc(
            summary="Update a sample",
            description="Only the fields present in the body change. Deleted samples cannot be updated.",
            path_model=SamplePath,
            request_model=SampleUpdate,
            result_model=SampleRead,
            result_description="Updated sample",
        ),
    )
    router.delete(
        "/:sampleId",
        sample_validator.delete,
        sample_controller.delete,
        doc=RouteDoc(
            summary="Soft delete a sample",
            description="Sets isActive=false and deletedAt; the sample stays readable.",
            path_model=SamplePath,
            result_model=SampleRead,
            result_description="Deleted sample",
        ),
    )
    router.post(
        "/:sampleId/secureAction",
        check_token,
        check_role,
        sample_validator.secure_action,
        sample_controller.secure_action,
        doc=RouteDoc(
            summary="Restore a deleted sample",
            description=(
                "Secured action. Requires a bearer token whose role claim includes one of: "
                + ", ".join(settings.secure_action_roles_list)
            ),
            path_model=SamplePath,
            request_model=SecureActionRequest,
            result_model=SampleRead,
            result_description="Restored sample",
            secured=True,
        ),
    )
    return router


def build_route_table() -> RouteTable:
    """The application's full, frozen route table."""
    table = RouteTable(poll_interval=settings.disconnect_poll_interval)
    table.include(build_sample_routes())
    return table.freeze()
