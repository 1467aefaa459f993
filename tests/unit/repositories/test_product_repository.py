"""Unit tests for product filter conditions."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from commerce_exports.models.enums import ProductStatus
from commerce_exports.repositories.product import ProductFilters, ProductRepository


@pytest.fixture
def repo(mock_db):
    return ProductRepository(mock_db)


def compiled(conditions) -> list[str]:
    return [str(condition.compile(compile_kwargs={"literal_binds": False})) for condition in conditions]


@pytest.mark.unit
class TestBuildConditions:
    """Tests for translating filters into SQL conditions."""

    def test_no_filters_no_conditions(self, repo):
        assert repo.build_conditions(ProductFilters()) == []

    def test_each_filter_adds_a_condition(self, repo):
        filters = ProductFilters(
            search="boot",
            brand_id=str(uuid4()),
            category_ids=[str(uuid4())],
            status=ProductStatus.ACTIVE,
            is_active=True,
            is_featured=False,
            min_price=10,
            max_price=20,
            has_stock=True,
            created_from=datetime(2026, 1, 1, tzinfo=UTC),
            created_to=datetime(2026, 2, 1, tzinfo=UTC),
        )

        conditions = repo.build_conditions(filters)

        # price bounds share one variant subquery
        assert len(conditions) == 10

    def test_price_and_stock_use_variant_subqueries(self, repo):
        sql = compiled(repo.build_conditions(ProductFilters(min_price=5, has_stock=False)))

        assert len(sql) == 2
        assert "product_variants.price >=" in sql[0]
        assert "NOT" in sql[1] and "EXISTS" in sql[1]

    def test_category_filter_uses_association_table(self, repo):
        sql = compiled(repo.build_conditions(ProductFilters(category_ids=[str(uuid4())])))

        assert "product_categories.category_id IN" in sql[0]
