"""
Plant Repository for PlantPal

Structured storage for plant records using SQLAlchemy:
- SQLite for development/testing
- Any SQLAlchemy-supported database for production

Every read and write is scoped to an owner id. A record that exists but
belongs to somebody else behaves exactly like a missing one.
"""

import uuid
from datetime import date, datetime
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .models import PlantModel, utcnow


# Columns a caller may change through update()
MUTABLE_FIELDS = (
    "name",
    "species",
    "last_watered",
    "interval_days",
    "sunlight",
    "indoors",
    "notes",
)


@dataclass
class StoredPlant:
    """Data class for plant data transfer."""

    id: str
    owner_id: str
    name: str
    last_watered: date
    interval_days: int

    species: str = ""
    sunlight: str = "medium"
    indoors: bool = True
    notes: str = ""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: PlantModel) -> "StoredPlant":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            owner_id=model.owner_id,
            name=model.name,
            last_watered=model.last_watered,
            interval_days=model.interval_days,
            species=model.species or "",
            sunlight=model.sunlight,
            indoors=model.indoors,
            notes=model.notes or "",
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "species": self.species,
            "last_watered": self.last_watered,
            "interval_days": self.interval_days,
            "sunlight": self.sunlight,
            "indoors": self.indoors,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class PlantRepository:
    """
    Repository for owner-scoped plant CRUD operations.

    Usage:
        repo = PlantRepository(engine)

        plant = repo.create(
            owner_id=user.id,
            name="Monstera",
            last_watered=date(2025, 9, 1),
            interval_days=7,
        )

        repo.list_for_owner(user.id)
    """

    def __init__(self, engine: Engine):
        """
        Initialize repository.

        Args:
            engine: SQLAlchemy engine shared with the other stores
        """
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine)

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

    def create(
        self,
        owner_id: str,
        name: str,
        last_watered: date,
        interval_days: int,
        **kwargs,
    ) -> StoredPlant:
        """
        Create a new plant.

        Args:
            owner_id: Owning user id
            name: Display name
            last_watered: Last watering date
            interval_days: Days between waterings
            **kwargs: species, sunlight, indoors, notes

        Returns:
            Created StoredPlant
        """
        with self.get_session() as session:
            plant = PlantModel(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                name=name,
                last_watered=last_watered,
                interval_days=interval_days,
                **kwargs,
            )
            session.add(plant)
            session.commit()
            session.refresh(plant)

            logger.debug(f"Plant {plant.id} created for owner {owner_id}")
            return StoredPlant.from_model(plant)

    def get(self, owner_id: str, plant_id: str) -> Optional[StoredPlant]:
        """
        Get a plant by ID.

        Returns:
            StoredPlant or None if missing or not owned by ``owner_id``
        """
        with self.get_session() as session:
            plant = session.query(PlantModel).filter(
                PlantModel.id == plant_id,
                PlantModel.owner_id == owner_id,
            ).first()

            if plant:
                return StoredPlant.from_model(plant)
            return None

    def list_for_owner(self, owner_id: str) -> list[StoredPlant]:
        """List an owner's plants, newest first."""
        with self.get_session() as session:
            plants = session.query(PlantModel).filter(
                PlantModel.owner_id == owner_id,
            ).order_by(
                PlantModel.created_at.desc(),
            ).all()

            return [StoredPlant.from_model(p) for p in plants]

    def update(
        self,
        owner_id: str,
        plant_id: str,
        updates: dict,
    ) -> Optional[StoredPlant]:
        """
        Apply a partial update. Fields not in ``updates`` are kept.

        Args:
            owner_id: Owning user id
            plant_id: Plant ID
            updates: Field name -> new value

        Returns:
            Updated StoredPlant or None
        """
        with self.get_session() as session:
            plant = session.query(PlantModel).filter(
                PlantModel.id == plant_id,
                PlantModel.owner_id == owner_id,
            ).first()

            if not plant:
                return None

            for key, value in updates.items():
                if key in MUTABLE_FIELDS:
                    setattr(plant, key, value)

            plant.updated_at = utcnow()
            session.commit()
            session.refresh(plant)

            return StoredPlant.from_model(plant)

    def delete(self, owner_id: str, plant_id: str) -> bool:
        """
        Delete a plant.

        Returns:
            True if a record was removed
        """
        with self.get_session() as session:
            deleted = session.query(PlantModel).filter(
                PlantModel.id == plant_id,
                PlantModel.owner_id == owner_id,
            ).delete(synchronize_session=False)
            session.commit()

            return deleted > 0
