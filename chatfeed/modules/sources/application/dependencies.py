"""Source module application dependencies."""

from typing import NoReturn

from fastapi import Depends

from chatfeed.modules.sources.application.services import SourceCatalogService
from chatfeed.modules.sources.domain.repository import SourceRepository


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_source_repository() -> SourceRepository:
    _missing_dependency("SourceRepository")


async def get_source_catalog_service(
    source_repository: SourceRepository = Depends(get_source_repository),
) -> SourceCatalogService:
    return SourceCatalogService(source_repository)
