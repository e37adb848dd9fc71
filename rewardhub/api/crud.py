"""
Generic REST surface for one repository-backed resource.

``build_crud_router`` produces the list / get / create / update / delete
endpoints shared by every entity; resource modules add their extra routes
(claims, settings) on the returned router.
"""
import logging
from contextlib import contextmanager
from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException, status

from rewardhub.api.deps import require_admin
from rewardhub.repositories import ClaimRejected, CrudRepository
from rewardhub.schemas import CreateModel, SuccessResponse, ErrorResponse, UpdateModel
from rewardhub.store import RecordNotFound, StoreError

logger = logging.getLogger(__name__)

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    500: {"model": ErrorResponse, "description": "Store unavailable"},
}


@contextmanager
def store_errors(failure_message: str, label: str = "Record"):
    """
    Translate repository exceptions into HTTP errors.

    RecordNotFound -> 404, ClaimRejected -> 409, StoreError -> 500 with
    ``failure_message``. Anything else propagates to the global handler.
    """
    try:
        yield
    except RecordNotFound as e:
        logger.warning(f"{label} not found: {e.record_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    except ClaimRejected as e:
        logger.warning(f"{label} claim rejected: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StoreError as e:
        logger.error(f"{failure_message}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_message)


def build_crud_router(
    *,
    prefix: str,
    tag: str,
    label: str,
    plural: str,
    repository: Callable[..., CrudRepository],
    create_model: type[CreateModel],
    update_model: type[UpdateModel],
    response_model: type,
) -> APIRouter:
    """
    Build the five standard endpoints for a resource.

    Args:
        prefix: Mount path, e.g. "/api/challenges"
        tag: OpenAPI tag
        label: Singular human name, e.g. "challenge"
        plural: Plural human name used in error messages
        repository: Dependency returning the resource's repository
        create_model: Body schema for POST
        update_model: Body schema for PATCH
        response_model: Schema of one stored record
    """
    router = APIRouter(prefix=prefix, tags=[tag], responses=ERROR_RESPONSES)
    title = label[0].upper() + label[1:]

    @router.get("", response_model=list[response_model], summary=f"List {plural}")
    def list_records(repo: CrudRepository = Depends(repository)):
        with store_errors(f"Failed to fetch {plural}", title):
            return repo.list()

    @router.get(
        "/{record_id}",
        response_model=response_model,
        responses={404: {"model": ErrorResponse, "description": f"{title} not found"}},
        summary=f"Get one {label}",
    )
    def get_record(record_id: str, repo: CrudRepository = Depends(repository)):
        with store_errors(f"Failed to fetch {label}", title):
            record = repo.get_by_id(record_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{title} not found")
        return record

    @router.post(
        "",
        response_model=response_model,
        dependencies=[Depends(require_admin)],
        summary=f"Create a {label}",
    )
    def create_record(payload: create_model, repo: CrudRepository = Depends(repository)):  # type: ignore[valid-type]
        with store_errors(f"Failed to create {label}", title):
            return repo.create(payload.to_record())

    @router.patch(
        "/{record_id}",
        response_model=response_model,
        dependencies=[Depends(require_admin)],
        responses={404: {"model": ErrorResponse, "description": f"{title} not found"}},
        summary=f"Update a {label}",
    )
    def update_record(
        record_id: str,
        payload: update_model,  # type: ignore[valid-type]
        repo: CrudRepository = Depends(repository),
    ):
        with store_errors(f"Failed to update {label}", title):
            return repo.update(record_id, payload.to_partial())

    @router.delete(
        "/{record_id}",
        response_model=SuccessResponse,
        dependencies=[Depends(require_admin)],
        summary=f"Delete a {label}",
    )
    def delete_record(record_id: str, repo: CrudRepository = Depends(repository)):
        with store_errors(f"Failed to delete {label}", title):
            repo.delete(record_id)
        return SuccessResponse(success=True)

    return router
