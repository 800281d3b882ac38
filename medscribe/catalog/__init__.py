from .loader import CatalogLoader
from .types import Catalog, CatalogError, CatalogEmpty, CatalogUnavailable

__all__ = ['CatalogLoader', 'Catalog', 'CatalogError', 'CatalogEmpty', 'CatalogUnavailable']
