"""National sales volume lookup keyed by canonical make/model."""

import logging
from pathlib import Path

from ....core.domain.exceptions import CatalogLoadError, SalesLookupError
from ....core.domain.utils import canonicalize_key
from ....core.ports.sales_lookup_port import SalesLookupPort
from .json_catalog import read_json

logger = logging.getLogger(__name__)


class JsonSalesLookup(SalesLookupPort):
    """Sales volumes from a JSON object of ``{"toyota_rav4": 12345, ...}``.

    Keys are re-canonicalized on load so a hand-edited file still joins with
    catalog make/model pairs.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._volumes: dict[str, int] | None = None

    def load(self) -> dict[str, int]:
        if self._volumes is not None:
            return self._volumes

        try:
            data = read_json(self.path)
        except CatalogLoadError as e:
            raise SalesLookupError(
                f"Sales lookup could not be read: {self.path}",
                cause=e,
                context={"path": str(self.path)},
            ) from e
        if not isinstance(data, dict):
            raise SalesLookupError(
                f"Expected a JSON object in {self.path}", context={"path": str(self.path)}
            )

        volumes: dict[str, int] = {}
        for raw_key, raw_volume in data.items():
            key = canonicalize_key(str(raw_key))
            if key is None:
                logger.warning("Skipping empty sales lookup key %r", raw_key)
                continue
            try:
                volume = int(raw_volume)
            except (TypeError, ValueError) as e:
                raise SalesLookupError(
                    f"Sales volume for {raw_key!r} is not a number",
                    cause=e,
                    context={"key": raw_key},
                ) from e
            volumes[key] = volume

        logger.info("Loaded sales volumes for %d models", len(volumes))
        self._volumes = volumes
        return volumes

    def volume_for(self, key: str | None) -> int:
        if not key:
            return 0
        return self.load().get(key, 0)
