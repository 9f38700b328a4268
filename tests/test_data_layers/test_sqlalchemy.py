from typing import List

import pytest
from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import QueryParams

from fastapi_query_helper.data_layers.sqlalchemy import SqlalchemyQueryBuilder
from fastapi_query_helper.exceptions import InvalidFilters, InvalidInclude, InvalidSort
from fastapi_query_helper.querystring import QueryParamsReader, QueryStringManager
from tests.models import Post, User


def make_manager(params, **kwargs) -> QueryStringManager:
    return QueryStringManager(QueryParamsReader(QueryParams(params)), **kwargs)


async def fetch_names(session: AsyncSession, manager: QueryStringManager) -> List[str]:
    builder = manager.prepare_sql_query(SqlalchemyQueryBuilder(User))
    result = await session.execute(builder.query)
    return [user.name for user in result.scalars().unique()]


@pytest.mark.asyncio
@pytest.mark.usefixtures("user_1", "user_2", "user_3")
class TestSqlalchemyQueryBuilder:
    async def test_default_sort_by_updated_at(self, async_session: AsyncSession):
        assert await fetch_names(async_session, make_manager([])) == ["john", "alice", "sam"]

    async def test_sort(self, async_session: AsyncSession):
        manager = make_manager([("sort", "trans_status|DESC,name|asc")])
        assert await fetch_names(async_session, manager) == ["sam", "alice", "john"]

    async def test_search_on_several_fields(self, async_session: AsyncSession):
        manager = make_manager([("q", "example"), ("sort", "name")]).set_search_fields(["name", "email"])
        assert await fetch_names(async_session, manager) == ["alice", "john"]

    async def test_search_on_field(self, async_session: AsyncSession):
        manager = make_manager([("q", "name:am")]).set_search_fields(["name"])
        assert await fetch_names(async_session, manager) == ["sam"]

    async def test_search_by_id(self, async_session: AsyncSession, user_2: User):
        manager = make_manager([("q", f"id:{user_2.id}")]).set_search_fields(["name"])
        assert await fetch_names(async_session, manager) == ["sam"]

    async def test_ids(self, async_session: AsyncSession, user_1: User, user_3: User):
        manager = make_manager([("ids", f"{user_1.id},{user_3.id}"), ("sort", "name|asc")])
        assert await fetch_names(async_session, manager) == ["alice", "john"]

    async def test_single_id(self, async_session: AsyncSession, user_3: User):
        manager = make_manager([("ids", str(user_3.id))])
        assert await fetch_names(async_session, manager) == ["alice"]

    async def test_status_default(self, async_session: AsyncSession):
        manager = make_manager(
            [("sort", "name")],
            defaults={"status": {"field": "trans_status", "state": "active"}},
        ).set_where_keys(["trans_status"])
        assert await fetch_names(async_session, manager) == ["alice", "john"]

    async def test_comparison_operators(self, async_session: AsyncSession):
        manager = make_manager(
            [
                ("created_at[gte]", "2023-03-01T00:00:00"),
                ("created_at[lt]", "2024-01-01T00:00:00"),
            ],
        )
        assert await fetch_names(async_session, manager) == ["sam"]

    async def test_unknown_sort_order(self, async_session: AsyncSession):
        with pytest.raises(InvalidSort) as exc_info:
            await fetch_names(async_session, make_manager([("sort", "name|sideways")]))

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert exc_info.value.as_dict == {
            "status_code": status.HTTP_400_BAD_REQUEST,
            "source": {"parameter": "sort"},
            "title": "Invalid sort querystring parameter.",
            "detail": "Sort order 'sideways' of 'name' must be one of ('asc', 'desc')",
        }

    async def test_unknown_sort_field(self, async_session: AsyncSession):
        with pytest.raises(InvalidSort):
            await fetch_names(async_session, make_manager([("sort", "posts|asc")]))

    async def test_unknown_filter_field(self, async_session: AsyncSession):
        manager = make_manager([("q", "password:x")]).set_search_fields(["name"])
        with pytest.raises(InvalidFilters) as exc_info:
            await fetch_names(async_session, manager)

        assert exc_info.value.detail == {
            "errors": [
                {
                    "status_code": status.HTTP_400_BAD_REQUEST,
                    "source": {"parameter": "q"},
                    "title": "Invalid filters querystring parameter.",
                    "detail": "User has no attribute password",
                },
            ],
        }

    async def test_value_cast_failed(self, async_session: AsyncSession):
        with pytest.raises(InvalidFilters) as exc_info:
            await fetch_names(async_session, make_manager([("ids", "1,abc")]))

        assert exc_info.value.as_dict["source"] == {"parameter": "ids"}

    async def test_search_by_invalid_id(self, async_session: AsyncSession):
        manager = make_manager([("q", "id:abc")]).set_search_fields(["name"])
        with pytest.raises(InvalidFilters) as exc_info:
            await fetch_names(async_session, manager)

        assert exc_info.value.as_dict["source"] == {"parameter": "q"}

    async def test_unknown_relation(self, async_session: AsyncSession):
        with pytest.raises(InvalidInclude) as exc_info:
            await fetch_names(async_session, make_manager([("relations", "friends")]))

        assert exc_info.value.as_dict["source"] == {"parameter": "relations"}


@pytest.mark.asyncio
@pytest.mark.usefixtures("user_2")
async def test_include_nested_relations(async_session: AsyncSession, user_1: User, user_1_posts: List[Post]):
    manager = make_manager([("relations", "posts.comments,posts.user"), ("ids", str(user_1.id))])
    builder = manager.prepare_sql_query(SqlalchemyQueryBuilder(User))

    result = await async_session.execute(builder.query)
    (user,) = result.scalars().unique().all()

    assert sorted(post.title for post in user.posts) == ["post 1 of john", "post 2 of john"]
    comments = {post.title: [comment.text for comment in post.comments] for post in user.posts}
    assert comments == {"post 1 of john": ["nice"], "post 2 of john": []}


@pytest.mark.asyncio
@pytest.mark.usefixtures("user_1_posts")
async def test_integer_comparison(async_session: AsyncSession):
    manager = make_manager([("views[gt]", "10")]).set_where_keys(["views"])
    builder = manager.prepare_sql_query(SqlalchemyQueryBuilder(Post))

    result = await async_session.execute(builder.query)
    assert [post.title for post in result.scalars()] == ["post 2 of john"]


def test_builder_accepts_prepared_query():
    query = SqlalchemyQueryBuilder(User).query.where(User.trans_status == "active")
    builder = SqlalchemyQueryBuilder(User, query=query)

    builder.where_equals("name", "john")

    sql = str(builder.query.compile(compile_kwargs={"literal_binds": True}))
    assert "users.trans_status = 'active'" in sql
    assert "users.name = 'john'" in sql


def test_builder_without_value_conversion():
    builder = SqlalchemyQueryBuilder(User, auto_convert_values=False)
    builder.where_in("id", ["1", "2"])
    assert builder.query.whereclause.right.value == ["1", "2"]


def test_where_value_error_points_to_where_key():
    manager = make_manager([("views[gt]", "many")]).set_where_keys(["views"])
    with pytest.raises(InvalidFilters) as exc_info:
        manager.prepare_sql_query(SqlalchemyQueryBuilder(Post))

    assert exc_info.value.as_dict == {
        "status_code": status.HTTP_400_BAD_REQUEST,
        "source": {"parameter": "views"},
        "title": "Invalid filters querystring parameter.",
        "detail": "Can't cast value 'many' of 'views' to int",
    }
