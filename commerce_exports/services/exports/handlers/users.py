"""
User export handler.

Profile fields are exported through dotted column paths into the nested
``profile`` entry of each row.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commerce_exports.models.contracts.export import ExportColumnDefinition
from commerce_exports.models.enums import ColumnPolicy
from commerce_exports.models.orm.user import User
from commerce_exports.repositories.user import UserFilters, UserRepository
from commerce_exports.services.exports.base import BaseExportHandler, PageRequest, PageResult
from commerce_exports.services.exports.filters import clean_bool, clean_datetime, clean_str, pick

USER_EXPORT_COLUMNS: list[ExportColumnDefinition] = [
    ExportColumnDefinition(key="id", label="User ID"),
    ExportColumnDefinition(key="email", label="Email"),
    ExportColumnDefinition(key="username", label="Username"),
    ExportColumnDefinition(key="isActive", label="Active"),
    ExportColumnDefinition(key="createdAt", label="Created At"),
    ExportColumnDefinition(key="firstName", label="First Name", path="profile.firstName"),
    ExportColumnDefinition(key="lastName", label="Last Name", path="profile.lastName"),
    ExportColumnDefinition(key="phoneNumber", label="Phone Number", path="profile.phoneNumber"),
    ExportColumnDefinition(key="city", label="City", path="profile.city"),
    ExportColumnDefinition(key="country", label="Country", path="profile.country"),
]


def normalize_user_filters(raw: Mapping[str, Any] | None) -> UserFilters:
    """Build a typed filter set from an untyped filter bag."""
    if not raw:
        return UserFilters()

    return UserFilters(
        search=clean_str(pick(raw, "search")),
        is_active=clean_bool(pick(raw, "isActive", "is_active")),
        created_from=clean_datetime(pick(raw, "createdFrom", "created_from")),
        created_to=clean_datetime(pick(raw, "createdTo", "created_to")),
    )


class UserExportHandler(BaseExportHandler):
    """Export handler for user accounts."""

    resource = "users"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        column_policy: ColumnPolicy = ColumnPolicy.USE_REQUESTED,
    ):
        super().__init__(column_policy)
        self.session_factory = session_factory

    def get_columns(self) -> list[ExportColumnDefinition]:
        return list(USER_EXPORT_COLUMNS)

    async def fetch_page(
        self,
        pagination: PageRequest,
        filters: Mapping[str, Any] | None = None,
    ) -> PageResult:
        normalized = normalize_user_filters(filters)
        async with self.session_factory() as session:
            items, total = await UserRepository(session).find_page(
                normalized,
                page=pagination.page,
                limit=pagination.limit,
            )
        return PageResult(items=items, total=total)

    def transform_record(self, record: User) -> dict[str, Any]:
        profile = record.profile
        return {
            "id": str(record.id),
            "email": record.email,
            "username": record.username,
            "isActive": bool(record.is_active),
            "createdAt": record.created_at,
            "profile": (
                {
                    "firstName": profile.first_name,
                    "lastName": profile.last_name,
                    "phoneNumber": profile.phone_number,
                    "city": profile.city,
                    "country": profile.country,
                }
                if profile is not None
                else None
            ),
        }
