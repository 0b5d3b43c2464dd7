"""Shared fixtures: a small schema covering every type kind."""

import json

import httpx
import pytest
from graphql import build_schema, introspection_from_schema

SDL = '''
enum Role {
  ADMIN
  VIEWER
  EDITOR
}

input ContactInput {
  email: String!
  phone: String
}

input UserInput {
  name: String!
  age: Int
  roles: [Role!]
  contact: ContactInput
  active: Boolean = true
}

type Contact {
  email: String
  phone: String
}

type Profile {
  bio: String
  owner: User
}

type User {
  id: ID!
  name: String!
  age: Int
  role: Role
  contact: Contact
  profile: Profile
  friends: [User!]!
}

type Hollow {
  inner: Hollow
}

union SearchResult = User | Profile

type Query {
  "Say hello"
  hello(name: String): String
  user(id: ID!): User
  users(limit: Int! = 10, roles: [Role!]): [User!]!
  search(term: String!): [SearchResult!]!
  hollow: Hollow
  ratio(value: Float!): Float
  createUser: Boolean
}

type Mutation {
  createUser(input: UserInput!): User
  setActive(id: ID!, active: Boolean!): Boolean
}

type Subscription {
  userCreated: User
}
'''


@pytest.fixture
def schema():
    return build_schema(SDL)


@pytest.fixture
def introspection(schema):
    """Introspection ``data`` as a server would return it."""
    return introspection_from_schema(schema)


class FakeServer:
    """Records requests and answers introspection and execution calls."""

    def __init__(self, introspection, result=None, status_code=200, etag='"v1"'):
        self.introspection = introspection
        self.result = result if result is not None else {"data": {}}
        self.status_code = status_code
        self.etag = etag
        self.requests: list[httpx.Request] = []
        self.required_headers: dict[str, str] = {}

    @property
    def introspection_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if "__schema" in self.body(r)["query"]]

    @property
    def execution_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if "__schema" not in self.body(r)["query"]]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for name, value in self.required_headers.items():
            if request.headers.get(name) != value:
                return httpx.Response(401, json={"errors": [{"message": "unauthorized"}]})
        if "__schema" in self.body(request)["query"]:
            headers = {"etag": self.etag} if self.etag else {}
            return httpx.Response(200, json={"data": self.introspection}, headers=headers)
        return httpx.Response(self.status_code, json=self.result)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def server(introspection):
    return FakeServer(introspection)


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"
