"""
Export Job Repository

Provides database operations for the ExportJob model.
"""

from uuid import UUID

from commerce_exports.models.orm.export_job import ExportJob
from commerce_exports.repositories.base import BaseRepository


class ExportJobRepository(BaseRepository[ExportJob]):
    """Repository for ExportJob model operations."""

    model = ExportJob

    async def list_for_resource(
        self,
        resource: str,
        *,
        requested_by: UUID | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[ExportJob], int]:
        """
        List jobs for a resource, newest first.

        Args:
            resource: Resource key (e.g. "products")
            requested_by: Only jobs requested by this actor, if set
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Tuple of (jobs, total count)
        """
        filters = [ExportJob.resource == resource]
        if requested_by is not None:
            filters.append(ExportJob.requested_by == requested_by)

        return await self.get_paginated(
            filters=filters,
            order_by=[ExportJob.created_at.desc(), ExportJob.id.desc()],
            limit=limit,
            offset=offset,
        )
