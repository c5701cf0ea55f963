# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from multischema.config import MultiSchemaConfig, reset_config, set_config
from multischema.models import SchemaEntry
from multischema.project import ProjectOptions, SchemaProject
from multischema.ref_resolver import RefResolver
from multischema.registry import SchemaRegistry


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from MULTISCHEMA_* variables and the config singleton."""
    import os

    for name in list(os.environ):
        if name.startswith("MULTISCHEMA_"):
            monkeypatch.delenv(name, raising=False)
    set_config(MultiSchemaConfig())
    yield
    reset_config()


@pytest.fixture
def user_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "id": {"type": "string", "format": "uuid"},
            "name": {"type": "string", "minLength": 1},
            "age": {"type": "integer", "minimum": 0},
        },
        "required": ["id", "name"],
    }


@pytest.fixture
def post_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "author": {"$ref": "user"},
        },
        "required": ["title", "author"],
    }


@pytest.fixture
def self_containing_schema() -> Dict[str, Any]:
    """Object whose ``self`` property is the object itself."""
    schema: Dict[str, Any] = {"type": "object", "properties": {}}
    schema["properties"]["self"] = schema
    return schema


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry()


@pytest.fixture
def populated_registry(registry, user_schema, post_schema) -> SchemaRegistry:
    registry.add_entry(SchemaEntry(id="user", raw_schema=user_schema, export_name="User"))
    registry.add_entry(SchemaEntry(id="post", raw_schema=post_schema, export_name="Post"))
    return registry


@pytest.fixture
def resolver(populated_registry) -> RefResolver:
    return RefResolver(populated_registry)


@pytest.fixture
def project() -> SchemaProject:
    return SchemaProject(ProjectOptions(config=MultiSchemaConfig(generate_index=False)))


@pytest.fixture
def schema_dir(tmp_path, user_schema, post_schema) -> Path:
    """Directory with user.json and post.json."""
    directory = tmp_path / "schemas"
    directory.mkdir()
    post = dict(post_schema)
    post["properties"] = dict(post_schema["properties"], author={"$ref": "./user.json"})
    (directory / "user.json").write_text(json.dumps(user_schema), encoding="utf-8")
    (directory / "post.json").write_text(json.dumps(post), encoding="utf-8")
    return directory
