"""Shared fixtures: a small shop API exercising every generator feature."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from sdkgen.config import GeneratorConfig
from sdkgen.loader import inline_refs
from sdkgen.pipeline import generate

SAMPLE_DOC: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Shop API", "description": "Test shop"},
    "servers": [
        {
            "url": "https://{region}.example.com/v1",
            "variables": {"region": {"default": "eu", "description": "Region"}},
        }
    ],
    "security": [{"bearerAuth": []}, {"oauth": ["read", "write"]}],
    "paths": {
        "/users/{id}": {
            "parameters": [
                {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}},
            ],
            "get": {
                "operationId": "getUser",
                "tags": ["users"],
                "description": "Fetch a single user.",
                "parameters": [
                    {
                        "name": "status",
                        "in": "query",
                        "schema": {"type": "string", "enum": ["active", "inactive"]},
                    },
                ],
                "responses": {
                    "200": {
                        "description": "OK",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/User"},
                            }
                        },
                    }
                },
            },
        },
        "/orders": {
            "get": {
                "operationId": "list",
                "tags": ["orders"],
                "responses": {
                    "200": {
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "orders": {
                                            "type": "array",
                                            "items": {"$ref": "#/components/schemas/Order"},
                                        },
                                        "total": {"type": "integer"},
                                    },
                                },
                            }
                        }
                    }
                },
            },
            "post": {
                "operationId": "createOrder",
                "parameters": [
                    {
                        "name": "status",
                        "in": "query",
                        "schema": {"type": "string", "enum": ["inactive", "active"]},
                    },
                ],
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/OrderInput"},
                        }
                    }
                },
                "responses": {
                    "200": {
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Order"},
                                },
                            }
                        }
                    }
                },
            },
        },
        "/orders/recent": {
            "get": {
                "operationId": "list",
                "tags": ["orders"],
                "responses": {
                    "200": {
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {"count": {"type": "integer"}},
                                },
                            }
                        }
                    }
                },
            },
        },
    },
    "components": {
        "schemas": {
            "User": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": "integer"},
                    "name": {"type": "string"},
                    "role": {"type": "string", "enum": ["admin", "member"]},
                },
            },
            "Address": {
                "type": "object",
                "properties": {
                    "street": {"type": "string", "description": "Street line"},
                    "city": {"type": "string"},
                },
            },
            "OrderInput": {
                "type": "object",
                "required": ["sku"],
                "properties": {
                    "sku": {"type": "string"},
                    "address": {"$ref": "#/components/schemas/Address"},
                    "priority": {"type": "string", "enum": ["low", "high"]},
                },
            },
            "Order": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "status": {"type": "string", "enum": ["active", "inactive"]},
                },
            },
        },
        "securitySchemes": {
            "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
            "apiKey": {"type": "apiKey", "name": "X-Key", "in": "header"},
        },
    },
}


@pytest.fixture
def sample_doc() -> dict[str, Any]:
    """A fresh, un-inlined copy of the sample document."""
    return copy.deepcopy(SAMPLE_DOC)


@pytest.fixture
def sample_spec(sample_doc) -> dict[str, Any]:
    """The sample document with references inlined."""
    return inline_refs(sample_doc)


@pytest.fixture
def config() -> GeneratorConfig:
    return GeneratorConfig()


@pytest.fixture
def sample_result(sample_spec, config):
    """Full generation run over the sample document."""
    return generate(sample_spec, config)
