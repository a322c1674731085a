"""
Fuel type mapping catalogue and its process-wide label cache.

Labels are read lazily from FuelTypeMapping the first time they are needed
and kept until invalidate_fuel_type_label_cache() is called. Every write to
fuel_type_mappings MUST invalidate the cache before the next read.

Population happens under a lock with a re-check, so concurrent first reads
converge on a single query and a single map.
"""

import logging
from threading import Lock
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from greenfleet.models.fuel_type_mapping import FuelTypeMapping
from greenfleet.schemas.fuel_type_mapping import CreateFuelTypeMappingInput

logger = logging.getLogger(__name__)

_cache_lock = Lock()
_label_cache: Optional[Dict[str, str]] = None


def _load_labels(db: Session) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    rows = db.query(FuelTypeMapping.vehicle_fuel_type, FuelTypeMapping.label).order_by(
        FuelTypeMapping.vehicle_fuel_type, FuelTypeMapping.scope
    ).all()
    for code, label in rows:
        # Lowest scope wins when a code is mapped for both scopes
        labels.setdefault(code, label)
    return labels


def get_fuel_type_labels(db: Session) -> Dict[str, str]:
    """Map of vehicle fuel-type code to display label."""
    global _label_cache

    cached = _label_cache
    if cached is not None:
        return cached

    with _cache_lock:
        if _label_cache is None:
            _label_cache = _load_labels(db)
            logger.debug("Fuel type label cache populated", extra={"entries": len(_label_cache)})
        return _label_cache


def get_fuel_type_label(db: Session, code: str) -> str:
    """Display label for a fuel-type code; unmapped codes are shown as-is."""
    return get_fuel_type_labels(db).get(code, code)


def invalidate_fuel_type_label_cache() -> None:
    global _label_cache
    with _cache_lock:
        _label_cache = None
    logger.debug("Fuel type label cache invalidated")


def list_fuel_type_mappings(db: Session) -> List[FuelTypeMapping]:
    return db.query(FuelTypeMapping).order_by(
        FuelTypeMapping.vehicle_fuel_type, FuelTypeMapping.scope
    ).all()


def create_fuel_type_mapping(db: Session, data: CreateFuelTypeMappingInput) -> FuelTypeMapping:
    """
    Persist a mapping. Raises IntegrityError when (code, scope) already exists.

    The caller invalidates the label cache after a successful commit.
    """
    mapping = FuelTypeMapping(
        vehicle_fuel_type=data.vehicle_fuel_type,
        label=data.label,
        scope=data.scope,
        description=data.description,
    )
    db.add(mapping)
    db.commit()
    db.refresh(mapping)
    logger.info(
        "Fuel type mapping created",
        extra={"mapping_id": mapping.id, "vehicle_fuel_type": mapping.vehicle_fuel_type, "scope": mapping.scope},
    )
    return mapping
