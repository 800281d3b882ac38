import logging
from threading import Lock
from typing import List, Set

from pydantic import BaseModel

from ..catalog import Catalog, CatalogLoader, CatalogEmpty, CatalogUnavailable


logger = logging.getLogger(__name__)


class NextDiseaseResponse(BaseModel):
    disease: str


class DiseaseTracker:
    """Hands out catalog entries one at a time, restarting from entry 0 once all were served."""

    def __init__(self, loader: CatalogLoader):
        self.loader = loader
        self.diseases: List[str] = []
        self.used_diseases: Set[str] = set()
        self.last_error = None
        self.lock = Lock()

    def load(self):
        catalog = self.loader.load()
        with self.lock:
            self._set_catalog(catalog)

    def replace(self, catalog: Catalog):
        with self.lock:
            self._set_catalog(catalog)
            self.used_diseases &= set(self.diseases)
        logger.info(f"Catalog replaced ({len(self.diseases)} diseases, {len(self.used_diseases)} already served)")

    def _set_catalog(self, catalog: Catalog):
        self.diseases = list(catalog.items)
        self.last_error = catalog.error

    def next(self) -> NextDiseaseResponse:
        if not self.diseases:
            self.load()

        with self.lock:
            if not self.diseases:
                if self.last_error:
                    raise CatalogUnavailable(self.last_error)
                raise CatalogEmpty(str(self.loader.path))

            disease = next((d for d in self.diseases if d not in self.used_diseases), None)
            if disease is None:
                logger.info("All diseases served, starting over")
                self.used_diseases.clear()
                disease = self.diseases[0]

            self.used_diseases.add(disease)

        return NextDiseaseResponse(disease=disease)

    def remaining(self) -> int:
        with self.lock:
            return len(set(self.diseases) - self.used_diseases)
