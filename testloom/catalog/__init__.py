from testloom.catalog.parser import CatalogError, load_catalog, parse_catalog_yaml
from testloom.catalog.registry import Catalog
from testloom.catalog.steps import parse_step

__all__ = ["Catalog", "CatalogError", "load_catalog", "parse_catalog_yaml", "parse_step"]
