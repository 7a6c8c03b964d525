"""
Plant Item API Routes

Owner-scoped CRUD for plant records. Every record returned carries its
derived ``nextWaterDate`` and ``urgency``.
"""

from fastapi import APIRouter, Depends, status
from loguru import logger

from plantpal.api.dependencies import (
    get_plant_repository,
    get_urgency_classifier,
    require_user,
)
from plantpal.api.schemas import (
    ErrorResponse,
    OkResponse,
    PlantCreate,
    PlantEnvelope,
    PlantListResponse,
    PlantResponse,
    PlantUpdate,
)
from plantpal.errors import NotFoundError
from plantpal.scheduling.urgency import UrgencyClassifier, ensure_schedulable
from plantpal.storage.plant_repository import StoredPlant
from plantpal.storage.protocols import PlantStore
from plantpal.storage.user_repository import StoredUser


router = APIRouter(prefix="/api/items", tags=["items"])


def _decorate(plant: StoredPlant, classifier: UrgencyClassifier) -> PlantResponse:
    status_ = classifier.status_for(plant.last_watered, plant.interval_days)
    return PlantResponse.from_plant(plant, status_)


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.get("", response_model=PlantListResponse)
def list_items(
    user: StoredUser = Depends(require_user),
    repo: PlantStore = Depends(get_plant_repository),
    classifier: UrgencyClassifier = Depends(get_urgency_classifier),
):
    """List the caller's plants, newest first."""
    plants = repo.list_for_owner(user.id)
    return PlantListResponse(items=[_decorate(p, classifier) for p in plants])


@router.post(
    "",
    response_model=PlantEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid fields"},
    },
)
def create_item(
    plant: PlantCreate,
    user: StoredUser = Depends(require_user),
    repo: PlantStore = Depends(get_plant_repository),
    classifier: UrgencyClassifier = Depends(get_urgency_classifier),
):
    """Create a plant for the caller."""
    created = repo.create(
        owner_id=user.id,
        name=plant.name,
        last_watered=plant.last_watered,
        interval_days=plant.interval_days,
        species=plant.species,
        sunlight=plant.sunlight.value,
        indoors=plant.indoors,
        notes=plant.notes,
    )
    logger.info(f"Created plant {created.id} for user {user.id}")
    return PlantEnvelope(item=_decorate(created, classifier))


@router.put(
    "/{item_id}",
    response_model=PlantEnvelope,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid fields"},
        404: {"model": ErrorResponse, "description": "Plant not found"},
    },
)
def update_item(
    item_id: str,
    plant: PlantUpdate,
    user: StoredUser = Depends(require_user),
    repo: PlantStore = Depends(get_plant_repository),
    classifier: UrgencyClassifier = Depends(get_urgency_classifier),
):
    """
    Update a plant.

    Supports partial updates - only provided fields are modified.
    """
    changes = plant.changes()
    if "last_watered" in changes or "interval_days" in changes:
        existing = repo.get(user.id, item_id)
        if existing is None:
            raise NotFoundError("plant")
        ensure_schedulable(
            changes.get("last_watered", existing.last_watered),
            changes.get("interval_days", existing.interval_days),
        )

    updated = repo.update(user.id, item_id, changes)
    if updated is None:
        raise NotFoundError("plant")
    return PlantEnvelope(item=_decorate(updated, classifier))


@router.delete(
    "/{item_id}",
    response_model=OkResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Plant not found"},
    },
)
def delete_item(
    item_id: str,
    user: StoredUser = Depends(require_user),
    repo: PlantStore = Depends(get_plant_repository),
):
    """Delete a plant."""
    if not repo.delete(user.id, item_id):
        raise NotFoundError("plant")
    logger.info(f"Deleted plant {item_id} for user {user.id}")
    return OkResponse(ok=True)
