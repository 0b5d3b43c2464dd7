"""Tests for configuration models."""

import json

import pytest
from pydantic import ValidationError

from gql_pycli.core.config import (
    DEFAULT_INTROSPECTION_TTL,
    AuthConfig,
    EndpointConfig,
    GqlConfig,
    default_cache_dir,
    load_config,
)
from gql_pycli.core.errors import InvalidArgsError
from gql_pycli.core.ir import RootKind


class TestEndpointConfig:
    """Tests for EndpointConfig."""

    def test_camel_case_keys(self):
        """Test keys as written in config files."""
        config = EndpointConfig.model_validate({
            "url": "https://x/graphql",
            "cache": {"introspectionTTL": 60},
            "help": {"groupOrder": ["mutation"], "preferKindOnConflict": "mutation"},
        })
        assert config.introspection_ttl == 60
        assert config.help.group_order == [RootKind.MUTATION]
        assert config.help.prefer_kind_on_conflict is RootKind.MUTATION

    def test_group_order_case_insensitive(self):
        """Test kind names in groupOrder and preferKindOnConflict ignore case."""
        config = EndpointConfig.model_validate({
            "url": "https://x",
            "help": {"groupOrder": ["Mutation", " QUERY "], "preferKindOnConflict": "Mutation"},
        })
        assert config.help.group_order == [RootKind.MUTATION, RootKind.QUERY]
        assert config.help.prefer_kind_on_conflict is RootKind.MUTATION

    def test_default_ttl(self):
        """Test the TTL falls back to the default."""
        assert EndpointConfig(url="https://x").introspection_ttl == DEFAULT_INTROSPECTION_TTL

    def test_self_alias_rejected(self):
        """Test aliases cannot point to themselves."""
        with pytest.raises(ValidationError, match="cannot point to itself"):
            EndpointConfig(url="https://x", aliases={"me": "me"})

    def test_chained_alias_rejected(self):
        """Test aliases cannot point to other aliases."""
        with pytest.raises(ValidationError, match="points to another alias"):
            EndpointConfig(url="https://x", aliases={"a": "b", "b": "user"})

    def test_unknown_keys_rejected(self):
        """Test typos in config are caught."""
        with pytest.raises(ValidationError):
            EndpointConfig.model_validate({"url": "https://x", "header": {}})

    def test_has_documents(self):
        """Test document configuration detection."""
        assert not EndpointConfig(url="https://x").has_documents
        assert EndpointConfig(url="https://x", fragments=["*.graphql"]).has_documents


class TestGqlConfig:
    """Tests for endpoint lookup."""

    def test_named_endpoint(self):
        """Test lookup by name."""
        config = GqlConfig(endpoints={"a": EndpointConfig(url="https://a"), "b": EndpointConfig(url="https://b")})
        name, endpoint = config.resolve_endpoint("b")
        assert (name, endpoint.url) == ("b", "https://b")

    def test_default_endpoint(self):
        """Test defaultEndpoint is used when no name is given."""
        config = GqlConfig.model_validate({
            "endpoints": {"a": {"url": "https://a"}, "b": {"url": "https://b"}},
            "defaultEndpoint": "a",
        })
        assert config.resolve_endpoint()[0] == "a"

    def test_single_endpoint_implied(self):
        """Test a lone endpoint needs no name."""
        config = GqlConfig(endpoints={"only": EndpointConfig(url="https://o")})
        assert config.resolve_endpoint()[0] == "only"

    def test_unknown_endpoint(self):
        """Test unknown names list the available endpoints."""
        config = GqlConfig(endpoints={"a": EndpointConfig(url="https://a")})
        with pytest.raises(InvalidArgsError, match="Available endpoints: a"):
            config.resolve_endpoint("z")


class TestLoadConfig:
    """Tests for load_config."""

    def test_load(self, tmp_path):
        """Test reading a JSON file."""
        path = tmp_path / "gqrc.json"
        path.write_text(json.dumps({"endpoints": {"api": {"url": "https://api"}}}))
        assert load_config(path).endpoints["api"].url == "https://api"

    def test_missing_file(self, tmp_path):
        """Test a missing file is invalid input."""
        with pytest.raises(InvalidArgsError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_bad_json(self, tmp_path):
        """Test malformed JSON is invalid input."""
        path = tmp_path / "gqrc.json"
        path.write_text("{")
        with pytest.raises(InvalidArgsError, match="not valid JSON"):
            load_config(path)

    def test_invalid_model(self, tmp_path):
        """Test validation errors are invalid input."""
        path = tmp_path / "gqrc.json"
        path.write_text(json.dumps({"endpoints": {"api": {}}}))
        with pytest.raises(InvalidArgsError, match="Invalid config file"):
            load_config(path)


class TestCacheDir:
    """Tests for default_cache_dir."""

    def test_env_override(self, monkeypatch, tmp_path):
        """Test GQL_CACHE_DIR wins."""
        monkeypatch.setenv("GQL_CACHE_DIR", str(tmp_path))
        assert default_cache_dir() == tmp_path

    def test_default(self, monkeypatch):
        """Test the home-relative default."""
        monkeypatch.delenv("GQL_CACHE_DIR", raising=False)
        assert default_cache_dir().parts[-3:] == (".gql", "cache", "introspection")


class TestAuthConfig:
    """Tests for the endpoint auth block."""

    def test_bearer(self):
        """Test bearer auth becomes an Authorization header."""
        config = EndpointConfig.model_validate({"url": "https://x", "auth": {"type": "bearer", "token": "t0k"}})
        assert config.auth.to_auth().get_headers() == {"Authorization": "Bearer t0k"}

    def test_basic(self):
        """Test basic auth encodes the credentials."""
        auth = AuthConfig(type="basic", username="user", password="pass").to_auth()
        assert auth.get_headers() == {"Authorization": "Basic dXNlcjpwYXNz"}

    def test_api_key_header(self):
        """Test API keys use the configured header name."""
        auth = AuthConfig(type="apiKey", token="k", header="X-Key").to_auth()
        assert auth.get_headers() == {"X-Key": "k"}

    def test_missing_credentials(self):
        """Test incomplete credentials are rejected."""
        with pytest.raises(ValidationError, match="requires a token"):
            AuthConfig(type="bearer")
        with pytest.raises(ValidationError, match="requires username and password"):
            AuthConfig(type="basic", username="user")

    def test_unknown_type(self):
        """Test only supported auth types are accepted."""
        with pytest.raises(ValidationError):
            AuthConfig(type="digest", token="t")
