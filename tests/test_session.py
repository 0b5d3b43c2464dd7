"""Tests for EndpointSession."""

import httpx
import pytest

from gql_pycli.core.config import EndpointConfig
from gql_pycli.core.errors import InvalidArgsError
from gql_pycli.core.executor import GraphQLExecutor
from gql_pycli.core.headers import parse_header_directive
from gql_pycli.core.introspection import IntrospectionCache
from gql_pycli.core.ir import RootKind
from gql_pycli.core.session import EndpointSession

ENDPOINT = "https://api.example.com/graphql"


def make_session(server, cache_dir, config_dir, **config) -> EndpointSession:
    client = httpx.AsyncClient(transport=server.transport)
    cache = IntrospectionCache(cache_dir, client=client)
    executor = GraphQLExecutor(cache, client=client)
    endpoint = EndpointConfig.model_validate({"url": ENDPOINT, **config})
    return EndpointSession("api", endpoint, config_dir, cache, executor)


class TestEndpointSession:
    """Tests for EndpointSession.run."""

    @pytest.mark.asyncio
    async def test_alias_resolution(self, server, cache_dir, tmp_path):
        """Test aliases reach the executor as canonical names."""
        session = make_session(server, cache_dir, tmp_path, aliases={"me": "user"})

        result = await session.run("me", variables={"id": "1"}, fields="id")

        assert "user(id: $id)" in result.document
        assert server.body(server.execution_requests[0])["variables"] == {"id": "1"}

    @pytest.mark.asyncio
    async def test_rename_resolution(self, server, cache_dir, tmp_path):
        """Test display names resolve back to fields."""
        session = make_session(server, cache_dir, tmp_path, help={"rename": {"hello": "greet"}})
        result = await session.run("greet")
        assert result.document == "query ($name: String) {\n  hello(name: $name)\n}"

    @pytest.mark.asyncio
    async def test_prefer_kind_from_config(self, server, cache_dir, tmp_path):
        """Test preferKindOnConflict picks the mutation."""
        session = make_session(
            server, cache_dir, tmp_path, help={"preferKindOnConflict": "mutation"}
        )
        result = await session.run("createUser", variables={"input.name": "Jess"}, fields="id")
        assert result.document.startswith("mutation")

    @pytest.mark.asyncio
    async def test_requested_kind(self, server, cache_dir, tmp_path):
        """Test an explicit kind resolves collisions."""
        session = make_session(server, cache_dir, tmp_path)
        result = await session.run("createUser", kind="mutation", variables={"input.name": "J"}, fields="id")
        assert result.document.startswith("mutation")

    @pytest.mark.asyncio
    async def test_subscriptions_rejected(self, server, cache_dir, tmp_path):
        """Test subscriptions are refused before any execution."""
        session = make_session(server, cache_dir, tmp_path)
        with pytest.raises(InvalidArgsError, match="Subscriptions are not supported"):
            await session.run("userCreated")
        assert server.execution_requests == []

    @pytest.mark.asyncio
    async def test_operation_name_requires_doc(self, server, cache_dir, tmp_path):
        """Test --operation-name alone is refused."""
        session = make_session(server, cache_dir, tmp_path)
        with pytest.raises(InvalidArgsError, match="--operation-name requires --doc"):
            await session.run("hello", operation_name="Hello")
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_auto_document(self, server, cache_dir, tmp_path):
        """Test a stored document named after the operation replaces generation."""
        (tmp_path / "hello.graphql").write_text("query hello { hello }")
        session = make_session(server, cache_dir, tmp_path, documents=["*.graphql"])

        result = await session.run("hello", fields="ignored")

        assert result.document == "query hello { hello }"
        assert server.body(server.execution_requests[0])["operationName"] == "hello"

    @pytest.mark.asyncio
    async def test_explicit_doc(self, server, cache_dir, tmp_path):
        """Test --doc values are resolved and sent with the operation name."""
        (tmp_path / "ops.graphql").write_text("query A { hello }\nquery B { ratio(value: $v) }")
        session = make_session(server, cache_dir, tmp_path)

        result = await session.run("hello", doc="ops.graphql", operation_name="A")

        assert "query A" in result.document
        assert server.body(server.execution_requests[0])["operationName"] == "A"

    @pytest.mark.asyncio
    async def test_headers_merged(self, server, cache_dir, tmp_path):
        """Test command-line directives override configured headers for both requests."""
        session = make_session(
            server, cache_dir, tmp_path, headers={"Authorization": "Bearer config", "X-Team": "core"}
        )

        await session.run(
            "hello",
            header_directives=[
                parse_header_directive("authorization: Bearer cli"),
                parse_header_directive("X-Team:"),
            ],
        )

        introspection = server.introspection_requests[0]
        execution = server.execution_requests[0]
        for request in (introspection, execution):
            assert request.headers["authorization"] == "Bearer cli"
            assert "x-team" not in request.headers

    @pytest.mark.asyncio
    async def test_auth_config(self, server, cache_dir, tmp_path):
        """Test the configured auth block reaches introspection and execution."""
        server.required_headers = {"authorization": "Bearer t0k"}
        session = make_session(server, cache_dir, tmp_path, auth={"type": "bearer", "token": "t0k"})

        await session.run("hello")

        assert len(server.introspection_requests) == 1
        assert server.execution_requests[0].headers["authorization"] == "Bearer t0k"

    @pytest.mark.asyncio
    async def test_directive_headers_key_the_cache(self, server, cache_dir, tmp_path):
        """Test introspection is cached per header set."""
        await make_session(server, cache_dir, tmp_path).run("hello")
        await make_session(server, cache_dir, tmp_path).run(
            "hello", header_directives=[parse_header_directive("Authorization: Bearer other")]
        )
        assert len(server.introspection_requests) == 2

    @pytest.mark.asyncio
    async def test_schema_loaded_once(self, server, cache_dir, tmp_path):
        """Test one session introspects at most once."""
        session = make_session(server, cache_dir, tmp_path)
        await session.run("hello")
        await session.run("hello")
        assert len(server.introspection_requests) == 1

    @pytest.mark.asyncio
    async def test_unknown_operation_suggests(self, server, cache_dir, tmp_path):
        """Test typos name the endpoint and offer suggestions."""
        session = make_session(server, cache_dir, tmp_path)
        with pytest.raises(InvalidArgsError, match='not found on endpoint "api". Did you mean: hello'):
            await session.run("helloo")

    @pytest.mark.asyncio
    async def test_list_operations(self, server, cache_dir, tmp_path):
        """Test listings use the session's configuration."""
        session = make_session(server, cache_dir, tmp_path, help={"hide": ["setActive"]})
        summaries = await session.list_operations(kind="mutation")
        assert [s.canonical_name for s in summaries] == ["createUser"]
        assert summaries[0].kind is RootKind.MUTATION

    @pytest.mark.asyncio
    async def test_for_url(self, server, cache_dir):
        """Test URL sessions run without configuration."""
        client = httpx.AsyncClient(transport=server.transport)
        cache = IntrospectionCache(cache_dir, client=client)
        session = EndpointSession.for_url(ENDPOINT, cache, GraphQLExecutor(cache, client=client))

        result = await session.run("ratio", variables={"value": "1.5"})

        assert result.variables == {"value": 1.5}
        assert session.get_document_store() is None
