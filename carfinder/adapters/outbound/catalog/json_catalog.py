"""Static vehicle catalog and review dataset loaded from JSON files."""

import json
import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any

from ....core.domain import (
    BodyType,
    FuelType,
    ReviewRating,
    ReviewRecord,
    SpecificationChunk,
    UseCase,
    VehicleRecord,
)
from ....core.domain.exceptions import CatalogLoadError
from ....core.domain.utils import normalize_text, parse_price, trim_keywords
from ....core.ports.catalog_port import CatalogPort

logger = logging.getLogger(__name__)

TRIM_LEVEL_FIELD = "schema_local trim level"


def read_json(path: Path) -> Any:
    """Read a JSON file, turning every failure into ``CatalogLoadError``."""
    try:
        with open(path, encoding="utf-8-sig") as handle:
            return json.load(handle)
    except FileNotFoundError as e:
        raise CatalogLoadError(
            f"Catalog file not found: {path}", cause=e, context={"path": str(path)}
        ) from e
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CatalogLoadError(
            f"Catalog file is unreadable or not valid JSON: {path}",
            cause=e,
            context={"path": str(path)},
        ) from e


def _enum_or_none(enum_type, raw: Any, field_name: str, vehicle_id: str):
    if raw in (None, ""):
        return None
    try:
        return enum_type(str(raw).strip().lower().replace(" ", "_").replace("-", "_"))
    except ValueError:
        logger.debug("Vehicle %s: unknown %s %r", vehicle_id, field_name, raw)
        return None


def _parse_year(raw: Any) -> int | None:
    try:
        return int(raw) if raw not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _parse_date(raw: Any) -> date | None:
    if not raw:
        return None
    text = str(raw).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug("Unparseable review date %r", raw)
        return None


def parse_vehicle(raw: dict[str, Any]) -> VehicleRecord:
    """Build a ``VehicleRecord`` from one catalog JSON object."""
    vehicle_id = str(raw.get("uid") or "").strip()
    if not vehicle_id:
        raise CatalogLoadError("Catalog record without uid", context={"record": str(raw)[:200]})

    specifications = raw.get("specifications") or {}
    variant = str(specifications.get(TRIM_LEVEL_FIELD) or "").strip()
    equipment = raw.get("standard_equipment") or {}

    use_cases = set()
    for tag in raw.get("carexpert_use_cases") or []:
        try:
            use_cases.add(UseCase(str(tag).strip().upper()))
        except ValueError:
            logger.debug("Vehicle %s: unknown use case %r", vehicle_id, tag)

    features = {
        str(key): value is True
        for key, value in (raw.get("carexpert_features") or {}).items()
    }

    chunks = tuple(
        SpecificationChunk(
            vehicle_id=vehicle_id,
            category=str(chunk.get("category") or "general"),
            content=normalize_text(str(chunk.get("content") or "")),
            chunk_id=chunk.get("chunk_id"),
        )
        for chunk in raw.get("chunks") or []
        if chunk.get("content")
    )

    return VehicleRecord(
        vehicle_id=vehicle_id,
        make=str(raw.get("make_display") or "").strip(),
        model=str(raw.get("model_display") or "").strip(),
        variant="" if variant == "-" else variant,
        body_type=_enum_or_none(BodyType, raw.get("carexpert_body_type"), "body type", vehicle_id),
        fuel_type=_enum_or_none(FuelType, raw.get("carexpert_fuel_type"), "fuel type", vehicle_id),
        seating_description=str(equipment.get("Seating") or ""),
        price=parse_price(raw.get("retail_price")),
        year=_parse_year(raw.get("year")),
        features=features,
        use_cases=frozenset(use_cases),
        chunks=chunks,
    )


def parse_review(raw: dict[str, Any]) -> ReviewRecord | None:
    make = str(raw.get("make_display") or "").strip()
    model = str(raw.get("model_display") or "").strip()
    if not make or not model:
        return None

    rating = None
    if raw.get("rating"):
        label = str(raw["rating"]).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            rating = ReviewRating(label)
        except ValueError:
            logger.warning("Unknown review rating %r for %s %s", raw["rating"], make, model)

    keywords = raw.get("trim_keywords")
    if isinstance(keywords, list):
        trims = frozenset(str(k).strip().upper() for k in keywords if str(k).strip())
    else:
        trims = trim_keywords(raw.get("trim") or raw.get("variant"))

    return ReviewRecord(
        make=make,
        model=model,
        url=raw.get("original_url") or None,
        rating=rating,
        publish_date=_parse_date(raw.get("publish_date")),
        trim_keywords=trims,
    )


class JsonCatalogStore(CatalogPort):
    """Read-only catalog built once from the partitioned vehicle files.

    After ``load()`` the store is never mutated, so it is safe to share
    between request threads.
    """

    def __init__(self, vehicle_paths: list[Path], reviews_path: Path) -> None:
        self.vehicle_paths = list(vehicle_paths)
        self.reviews_path = reviews_path
        self._vehicles: list[VehicleRecord] | None = None
        self._by_id: dict[str, VehicleRecord] = {}
        self._reviews: dict[tuple[str, str], list[ReviewRecord]] = {}
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._vehicles is not None

    def load(self) -> list[VehicleRecord]:
        """Load vehicles and reviews.

        Raises:
            CatalogLoadError: A file is missing or malformed, a record has no
                id, or two records share an id.
        """
        with self._lock:
            if self._vehicles is not None:
                return self._vehicles

            vehicles: list[VehicleRecord] = []
            by_id: dict[str, VehicleRecord] = {}
            for path in self.vehicle_paths:
                records = read_json(path)
                if not isinstance(records, list):
                    raise CatalogLoadError(
                        f"Expected a JSON list in {path}", context={"path": str(path)}
                    )
                for raw in records:
                    if not isinstance(raw, dict):
                        raise CatalogLoadError(
                            f"Non-object record in {path}", context={"path": str(path)}
                        )
                    vehicle = parse_vehicle(raw)
                    if vehicle.vehicle_id in by_id:
                        raise CatalogLoadError(
                            f"Duplicate vehicle id {vehicle.vehicle_id}",
                            context={"path": str(path), "vehicle_id": vehicle.vehicle_id},
                        )
                    by_id[vehicle.vehicle_id] = vehicle
                    vehicles.append(vehicle)
                logger.info("Loaded %d vehicles from %s", len(records), path.name)

            reviews: dict[tuple[str, str], list[ReviewRecord]] = {}
            raw_reviews = read_json(self.reviews_path)
            if not isinstance(raw_reviews, list):
                raise CatalogLoadError(
                    f"Expected a JSON list in {self.reviews_path}",
                    context={"path": str(self.reviews_path)},
                )
            for raw in raw_reviews:
                review = parse_review(raw) if isinstance(raw, dict) else None
                if review is not None:
                    reviews.setdefault((review.make.upper(), review.model.upper()), []).append(review)

            priced = sum(1 for vehicle in vehicles if vehicle.has_valid_price)
            logger.info(
                "Catalog ready: %d vehicles (%d priced), %d reviews",
                len(vehicles),
                priced,
                sum(len(group) for group in reviews.values()),
            )
            self._by_id = by_id
            self._reviews = reviews
            self._vehicles = vehicles
            return vehicles

    def get_all(self) -> list[VehicleRecord]:
        return self.load()

    def get_by_id(self, vehicle_id: str) -> VehicleRecord | None:
        self.load()
        return self._by_id.get(vehicle_id)

    def get_reviews_for(self, make: str, model: str) -> list[ReviewRecord]:
        self.load()
        return list(self._reviews.get((make.strip().upper(), model.strip().upper()), []))
