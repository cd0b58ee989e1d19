"""
Schema Registry
Declares the tenancy collections and idempotently creates them.
"""
from __future__ import annotations

from typing import List, Union

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateTable

from shared.exceptions import UnknownCollection
from shared.infrastructure.observability.logger import get_logger
from tenancy.domain.reports import CollectionOutcome
from tenancy.domain.value_objects import CollectionName, StepStatus

from .models import COLLECTION_MODELS

logger = get_logger(__name__)


class SchemaRegistry:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @property
    def collections(self) -> List[CollectionName]:
        return list(COLLECTION_MODELS)

    @staticmethod
    def _resolve(name: Union[str, CollectionName]) -> CollectionName:
        collection = CollectionName.parse(name)
        if collection is None:
            raise UnknownCollection(f"Unknown collection: {name}", details={"name": str(name)})
        return collection

    def creation_statement(self, name: Union[str, CollectionName]) -> str:
        """DDL for one collection, compiled for the engine's dialect."""
        table = COLLECTION_MODELS[self._resolve(name)].__table__
        return str(CreateTable(table).compile(dialect=self._engine.dialect)).strip()

    async def ensure_collection(self, name: Union[str, CollectionName]) -> CollectionOutcome:
        """
        Create the collection if it does not exist yet; existing tables are left untouched.

        Raises:
            UnknownCollection: name is not a declared collection
        """
        collection = self._resolve(name)
        table = COLLECTION_MODELS[collection].__table__
        async with self._engine.begin() as conn:
            await conn.run_sync(lambda sync_conn: table.create(sync_conn, checkfirst=True))
        logger.debug("Collection ensured", collection=collection.value)
        return CollectionOutcome(name=collection.value, status=StepStatus.SUCCESS)

    async def initialize_database(self) -> List[CollectionOutcome]:
        """Ensure every declared collection; one failure never stops the rest."""
        logger.info("Initializing tenancy collections", count=len(COLLECTION_MODELS))
        outcomes: List[CollectionOutcome] = []
        for collection in COLLECTION_MODELS:
            try:
                outcomes.append(await self.ensure_collection(collection))
            except Exception as e:
                logger.error("Collection initialization failed", collection=collection.value, error=str(e))
                outcomes.append(
                    CollectionOutcome(name=collection.value, status=StepStatus.ERROR, message=str(e))
                )
        logger.info(
            "Tenancy collections initialized",
            failed=[o.name for o in outcomes if o.status is StepStatus.ERROR],
        )
        return outcomes
