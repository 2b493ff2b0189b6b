"""Catalog source: package lookups normalized into Package objects."""
from __future__ import annotations
import logging
from typing import List

from catering.domain.Package import Package
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.infra.Api_Client import ApiClient
from catering.utilities.config import API_TOKEN, CATALOG_API_BASE_URL, REQUEST_TIMEOUT_SECONDS
from catering.utilities.validators import parse_package, unwrap_list

logger = logging.getLogger(__name__)


class CatalogGateway(ApiClient):
    def __init__(self, base_url: str = CATALOG_API_BASE_URL, token: str = API_TOKEN,
                 timeout: float = REQUEST_TIMEOUT_SECONDS, client=None):
        super().__init__(base_url, token, timeout, client)

    def fetch_package(self, package_id: str) -> Package:
        body = self.request("GET", f"/api/user/packages/{package_id}", allow_not_found=True)
        if body is None:
            raise ValidationError(f"Package '{package_id}' not found")
        return parse_package(body)

    def fetch_caterer_packages(self, caterer_id: str) -> List[Package]:
        """Every package of a caterer; malformed entries are skipped with a warning."""
        body = self.request("GET", f"/api/user/caterers/{caterer_id}/packages")
        try:
            entries = unwrap_list(body)
        except ValidationError as e:
            raise PersistenceFailure(f"Catalog returned an invalid listing: {e}", cause=e) from e
        packages: List[Package] = []
        for entry in entries:
            try:
                packages.append(parse_package(entry))
            except ValidationError as e:
                logger.warning(f"Skipping invalid package for caterer {caterer_id}: {e}")
        return packages


__all__ = ['CatalogGateway']
