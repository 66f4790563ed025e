"""
Property storage with in-memory and JSON file persistence.

Holds the property records that the HTTP layer scores on request.
The engine itself never reads or writes storage.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from dqi_engine.core import MissingRequiredField, PropertyInput, PropertyType


logger = logging.getLogger(__name__)


class PropertyStorage:
    """
    In-memory property storage with optional JSON file persistence.
    """

    def __init__(self, storage_path: Optional[str] = None):
        """
        Initialize storage.

        Args:
            storage_path: Optional path to JSON file for persistence.
                         If None, storage is in-memory only.
        """
        self._properties: dict[str, PropertyInput] = {}
        self._storage_path = storage_path
        self._load()

    def _load(self) -> None:
        """Load properties from JSON file if path is set."""
        if not self._storage_path:
            return

        path = Path(self._storage_path)
        if not path.exists():
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Could not load properties from %s: %s", path, e)
            return

        for record in data.get("properties", []):
            try:
                prop = PropertyInput.from_dict(record)
            except MissingRequiredField as e:
                logger.warning("Skipping stored property %s: %s", record.get("property_id"), e)
                continue
            self._properties[prop.property_id] = prop

        logger.info("Loaded %d properties from %s", len(self._properties), path)

    def _save(self) -> None:
        """Save properties to JSON file if path is set."""
        if not self._storage_path:
            return

        path = Path(self._storage_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": "1.0",
            "updated_at": datetime.now().isoformat(),
            "properties": [p.to_dict() for p in self._properties.values()],
        }

        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    def create(self, prop: PropertyInput) -> PropertyInput:
        """
        Store a new property.

        Raises:
            ValueError: If property_id already exists
        """
        if prop.property_id in self._properties:
            raise ValueError(f"Property '{prop.property_id}' already exists")

        self._properties[prop.property_id] = prop
        self._save()
        return prop

    def get(self, property_id: str) -> Optional[PropertyInput]:
        """Get a property by ID."""
        return self._properties.get(property_id)

    def get_all(self) -> list[PropertyInput]:
        """Get all properties."""
        return list(self._properties.values())

    def update(self, prop: PropertyInput) -> PropertyInput:
        """
        Replace an existing property.

        Raises:
            ValueError: If property doesn't exist
        """
        if prop.property_id not in self._properties:
            raise ValueError(f"Property '{prop.property_id}' not found")

        self._properties[prop.property_id] = prop
        self._save()
        return prop

    def delete(self, property_id: str) -> bool:
        """
        Delete a property.

        Returns:
            True if deleted, False if not found
        """
        if property_id not in self._properties:
            return False

        del self._properties[property_id]
        self._save()
        return True

    def count(self) -> int:
        """Get count of properties."""
        return len(self._properties)

    def search(
        self,
        property_type: Optional[PropertyType] = None,
        location: Optional[str] = None,
    ) -> list[PropertyInput]:
        """
        Search properties with filters.

        Args:
            property_type: Filter by sector
            location: Case-insensitive substring of the location

        Returns:
            List of matching properties
        """
        results = []

        for prop in self._properties.values():
            if property_type and prop.property_type != property_type:
                continue
            if location and location.lower() not in prop.location.lower():
                continue
            results.append(prop)

        return results

    def generate_id(self) -> str:
        """Generate a unique property ID."""
        return f"PROP-{datetime.now().strftime('%Y%m%d')}-{uuid.uuid4().hex[:6].upper()}"


def create_sample_properties(storage: PropertyStorage) -> None:
    """Create sample properties for demo purposes."""

    storage.create(PropertyInput(
        property_id=storage.generate_id(),
        name="Wilshire Office Tower",
        property_value=10_000_000,
        net_operating_income=580_000,
        square_feet=50_000,
        property_type=PropertyType.OFFICE,
        location="Los Angeles, CA",
    ))

    storage.create(PropertyInput(
        property_id=storage.generate_id(),
        name="Inland Empire Logistics Center",
        property_value=32_000_000,
        net_operating_income=1_790_000,
        square_feet=240_000,
        property_type=PropertyType.INDUSTRIAL,
        location="Riverside, CA",
        walt_years=7.5,
        occupancy=100,
        has_appraisal=True,
        has_environmental_report=True,
        has_condition_report=True,
    ))

    storage.create(PropertyInput(
        property_id=storage.generate_id(),
        name="Eastgate Shopping Plaza",
        property_value=10_000_000,
        net_operating_income=150_000,
        square_feet=60_000,
        property_type=PropertyType.RETAIL,
        location="Columbus, OH",
    ))
