"""
Deal Quality Index Engine - FastAPI Web Application

JSON API for scoring properties and managing the stored property
records that are scored on request.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from dqi_engine import __version__
from dqi_engine.analysis import DealQualityIndexEngine
from dqi_engine.api.storage import PropertyStorage, create_sample_properties
from dqi_engine.config import EngineConfig
from dqi_engine.core import (
    ConfidenceLevel,
    MissingRequiredField,
    OpenAINarrator,
    PILLAR_WEIGHTS,
    PropertyType,
    Rating,
    normalize_property,
)


logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title="Deal Quality Index Engine",
    description="Seven-pillar deal scoring API for commercial real estate",
    version=__version__,
)

# Global instances, created on first use
_config: Optional[EngineConfig] = None
_storage: Optional[PropertyStorage] = None
_engine: Optional[DealQualityIndexEngine] = None


def get_config() -> EngineConfig:
    """Get or load the global configuration."""
    global _config
    if _config is None:
        _config = EngineConfig.load()
    return _config


def get_storage() -> PropertyStorage:
    """Get or create the global storage instance."""
    global _storage
    if _storage is None:
        _storage = PropertyStorage(get_config().storage_path)

        # Create sample properties if storage is empty
        if _storage.count() == 0:
            create_sample_properties(_storage)

    return _storage


def get_engine() -> DealQualityIndexEngine:
    """
    Get or create the global engine.

    Narrative commentary is requested from OpenAI only when an API key
    is configured; otherwise the templated narrative is used.
    """
    global _engine
    if _engine is None:
        config = get_config()
        narrator = None
        if config.narrative_enabled and os.environ.get("OPENAI_API_KEY"):
            narrator = OpenAINarrator(
                model=config.openai_model,
                timeout=config.narrative_timeout,
            )
        else:
            logger.info("OPENAI_API_KEY not set or narrative disabled; using templated narratives")
        _engine = DealQualityIndexEngine(narrator=narrator, config=config)
    return _engine


# Pydantic models for request/response
class PropertyPayload(BaseModel):
    """
    Loosely shaped property record.

    Any upstream field names are accepted; normalisation picks the
    value, NOI, size, type and location by documented precedence.
    """

    model_config = ConfigDict(extra="allow")

    property_id: Optional[str] = None
    name: Optional[str] = None


def _payload_id(data: dict) -> Optional[str]:
    for key in ("property_id", "propertyId", "id"):
        if data.get(key):
            return str(data[key])
    return None


# Routes

@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "version": __version__, "properties": get_storage().count()}


@app.get("/api/enums")
async def get_enums():
    """Get available enum values for form dropdowns."""
    return {
        "property_types": [e.value for e in PropertyType],
        "ratings": [e.value for e in Rating],
        "confidence_levels": [e.value for e in ConfidenceLevel],
        "pillars": [{"name": p.value, "weight": w} for p, w in PILLAR_WEIGHTS.items()],
    }


@app.post("/api/dqi")
def analyze_payload(data: PropertyPayload):
    """Score an ad-hoc property payload without storing it."""
    payload = data.model_dump(exclude_none=True)
    property_id = _payload_id(payload) or "adhoc"

    try:
        analysis = get_engine().analyze(property_id, payload)
    except MissingRequiredField as e:
        raise HTTPException(status_code=400, detail=str(e))

    return analysis.to_dict()


@app.get("/api/properties")
async def list_properties(property_type: Optional[str] = None, location: Optional[str] = None):
    """List stored properties with optional filtering."""
    storage = get_storage()
    if property_type or location:
        sector = PropertyType.parse(property_type) if property_type else None
        properties = storage.search(property_type=sector, location=location)
    else:
        properties = storage.get_all()

    return {
        "properties": [p.to_dict() for p in properties],
        "count": len(properties),
    }


@app.get("/api/properties/{property_id}")
async def get_property(property_id: str):
    """Get a single stored property by ID."""
    prop = get_storage().get(property_id)

    if not prop:
        raise HTTPException(status_code=404, detail=f"Property '{property_id}' not found")

    return prop.to_dict()


@app.post("/api/properties")
async def create_property(data: PropertyPayload):
    """Store a new property."""
    storage = get_storage()
    payload = data.model_dump(exclude_none=True)

    # Generate ID if not provided
    property_id = _payload_id(payload) or storage.generate_id()

    try:
        prop = normalize_property(property_id, payload)
        storage.create(prop)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return JSONResponse(content=prop.to_dict(), status_code=201)


@app.put("/api/properties/{property_id}")
async def update_property(property_id: str, data: PropertyPayload):
    """Replace a stored property."""
    storage = get_storage()
    if not storage.get(property_id):
        raise HTTPException(status_code=404, detail=f"Property '{property_id}' not found")

    try:
        prop = normalize_property(property_id, data.model_dump(exclude_none=True))
        storage.update(prop)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return prop.to_dict()


@app.delete("/api/properties/{property_id}")
async def delete_property(property_id: str):
    """Delete a stored property."""
    if get_storage().delete(property_id):
        return {"deleted": property_id}
    raise HTTPException(status_code=404, detail=f"Property '{property_id}' not found")


@app.get("/api/deal-quality-index/{property_id}")
def get_deal_quality_index(property_id: str):
    """Score a stored property."""
    prop = get_storage().get(property_id)

    if not prop:
        raise HTTPException(status_code=404, detail=f"Property '{property_id}' not found")

    return get_engine().analyze(property_id, prop).to_dict()


# Run with: uvicorn web.app:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
