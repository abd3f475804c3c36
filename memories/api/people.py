"""People and clustering API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from memories.api.models.people import (
    ClusteringRequest,
    ClusteringResponse,
    PersonDetailResponse,
    PersonResponse,
    RenamePersonRequest,
)
from memories.core.exceptions import (
    DimensionMismatchError,
    InvalidThresholdError,
    PersonNotFoundError,
    StoreUnavailableError,
)
from memories.core.logging import get_logger
from memories.infrastructure.dependencies import get_clustering_service, get_people_service
from memories.services.clustering import ClusteringService
from memories.services.people import PeopleService

logger = get_logger(__name__)
router = APIRouter(
    responses={
        404: {"description": "Person not found"},
        500: {"description": "Internal server error"}
    }
)

CLUSTERING_FAILED = "clustering failed, try again"


@router.post(
    "/{user_id}/clustering",
    response_model=ClusteringResponse,
    summary="Group a user's faces into people",
    description=(
        "Clusters every face embedding of the user and reconciles the clusters with "
        "their existing people. Named people are kept; new people get placeholder names."
    ),
    responses={
        422: {"description": "Threshold outside (0, 1]"},
        503: {
            "description": "Run failed and left no partial results",
            "content": {"application/json": {"example": {"detail": CLUSTERING_FAILED}}},
        },
    },
)
async def run_clustering(
    user_id: str,
    request: Optional[ClusteringRequest] = None,
    service: ClusteringService = Depends(get_clustering_service),
) -> ClusteringResponse:
    """Run clustering for a user.

    Raises:
        HTTPException: If the threshold is invalid or the run fails
    """
    threshold = request.threshold if request else None
    try:
        result = await service.run(user_id, threshold=threshold)
    except InvalidThresholdError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (DimensionMismatchError, StoreUnavailableError) as e:
        logger.error("Clustering request failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=503, detail=CLUSTERING_FAILED)
    return ClusteringResponse.from_service_response(result)


@router.get(
    "/{user_id}/people",
    response_model=List[PersonResponse],
    summary="List a user's people",
)
async def list_people(
    user_id: str,
    service: PeopleService = Depends(get_people_service),
) -> List[PersonResponse]:
    """List people with photo counts, most recently seen first."""
    summaries = await service.list_people(user_id)
    return [PersonResponse.from_summary(s) for s in summaries]


@router.get(
    "/{user_id}/people/{person_id}",
    response_model=PersonDetailResponse,
    summary="Get one person with their photos",
)
async def get_person(
    user_id: str,
    person_id: str,
    service: PeopleService = Depends(get_people_service),
) -> PersonDetailResponse:
    """Get a person and the photos they appear in."""
    try:
        detail = await service.get_person(user_id, person_id)
    except PersonNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PersonDetailResponse.from_detail(detail)


@router.patch(
    "/{user_id}/people/{person_id}",
    response_model=PersonResponse,
    summary="Rename a person",
)
async def rename_person(
    user_id: str,
    person_id: str,
    request: RenamePersonRequest,
    service: PeopleService = Depends(get_people_service),
) -> PersonResponse:
    """Set the display name of a person."""
    try:
        person = await service.rename(user_id, person_id, request.name)
    except PersonNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PersonResponse.from_person(person)
