"""Tests for the schema_parser module."""

from servicegen.config import GeneratorConfig
from servicegen.schema_parser import get_body, get_file_fields, get_params, get_response
from servicegen.schema_resolver import SchemaResolver

# Minimal document with components for $ref resolution
_DOC: dict = {
    "openapi": "3.0.0",
    "info": {"title": "Pets", "version": "1.0.0"},
    "paths": {},
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "properties": {"id": {"type": "number"}, "name": {"type": "string"}},
                "required": ["name"],
            },
            "Filter": {
                "type": "object",
                "properties": {"q": {"type": "string"}},
            },
            "Envelope": {
                "type": "object",
                "properties": {
                    "code": {"type": "integer"},
                    "data": {"$ref": "#/components/schemas/Pet"},
                },
            },
            "Upload": {
                "type": "object",
                "properties": {
                    "file": {"type": "string", "format": "binary"},
                    "caption": {"type": "string"},
                },
            },
            "MultiUpload": {
                "allOf": [
                    {"$ref": "#/components/schemas/Upload"},
                    {
                        "properties": {
                            "attachments": {
                                "type": "array",
                                "items": {"type": "string", "format": "binary"},
                            },
                        },
                    },
                ],
            },
        },
        "parameters": {
            "Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}},
        },
        "requestBodies": {
            "PetBody": {
                "required": True,
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
            },
        },
    },
}


def _resolver(**options):
    return SchemaResolver(_DOC, GeneratorConfig(**options))


class TestGetParams:
    """Test parameter grouping by location."""

    def test_grouped_by_location(self):
        params = get_params(_resolver(), [
            {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}},
            {"name": "q", "in": "query", "schema": {"type": "string"}},
            {"name": "session", "in": "cookie", "schema": {"type": "string"}},
        ])
        assert [p["name"] for p in params["path"]] == ["id"]
        assert params["path"][0]["type"] == "number"
        assert [p["name"] for p in params["query"]] == ["q"]
        assert [p["name"] for p in params["cookie"]] == ["session"]

    def test_header_params_dropped(self):
        params = get_params(_resolver(), [
            {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
        ])
        assert params == {}

    def test_ref_param_resolved(self):
        params = get_params(_resolver(), [{"$ref": "#/components/parameters/Limit"}])
        assert params["query"][0]["name"] == "limit"
        assert params["query"][0]["type"] == "number"

    def test_implied_path_param_added(self):
        params = get_params(_resolver(), [], "/pets/{petId}")
        [param] = params["path"]
        assert param["name"] == "petId"
        assert param["type"] == "string"
        assert param["required"]

    def test_declared_path_param_not_duplicated(self):
        params = get_params(
            _resolver(),
            [{"name": "petId", "in": "path", "schema": {"type": "integer"}}],
            "/pets/{petId}",
        )
        assert len(params["path"]) == 1

    def test_no_empty_path_group(self):
        assert "path" not in get_params(_resolver(), [], "/pets")

    def test_object_param_flagged(self):
        params = get_params(_resolver(), [
            {"name": "filter", "in": "query", "schema": {"$ref": "#/components/schemas/Filter"}},
            {"name": "page", "in": "query", "schema": {"type": "integer"}},
        ])
        flags = {p["name"]: p["isObject"] for p in params["query"]}
        assert flags == {"filter": True, "page": False}

    def test_missing_schema_uses_default(self):
        params = get_params(_resolver(), [{"name": "x", "in": "query"}])
        assert params["query"][0]["type"] == "{ 'id'?: number; }"


class TestGetBody:
    """Test request body extraction."""

    def test_no_body(self):
        assert get_body(_resolver(), None) is None
        assert get_body(_resolver(), {"content": {}}) is None

    def test_object_body_lists_properties(self):
        body = get_body(_resolver(), {
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
                        "required": ["name"],
                    },
                },
            },
        })
        assert body["mediaType"] == "application/json"
        assert body["required"] is False
        entries = {e["key"]: e["schema"] for e in body["propertiesList"]}
        assert entries["name"]["required"]
        assert not entries["age"]["required"]
        assert entries["age"]["type"] == "number"

    def test_ref_body(self):
        body = get_body(_resolver(), {"$ref": "#/components/requestBodies/PetBody"})
        assert body == {"mediaType": "application/json", "required": True, "type": "API.Pet"}

    def test_wildcard_media_type_blanked(self):
        body = get_body(_resolver(), {"content": {"*/*": {"schema": {"type": "string"}}}})
        assert body["mediaType"] == ""
        assert body["type"] == "string"

    def test_first_media_type_wins(self):
        body = get_body(_resolver(), {
            "content": {
                "application/xml": {"schema": {"type": "string"}},
                "application/json": {"schema": {"type": "number"}},
            },
        })
        assert body["mediaType"] == "application/xml"

    def test_file_fields_excluded_from_properties(self):
        body = get_body(_resolver(), {
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "file": {"type": "string", "format": "binary"},
                            "caption": {"type": "string"},
                        },
                    },
                },
            },
        })
        assert [e["key"] for e in body["propertiesList"]] == ["caption"]


class TestGetFileFields:
    """Test multipart file field discovery."""

    def test_not_multipart(self):
        assert get_file_fields(_resolver(), {"content": {"application/json": {"schema": {}}}}) is None

    def test_inline_single_file(self):
        fields = get_file_fields(_resolver(), {
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {"file": {"type": "string", "format": "binary"}},
                    },
                },
            },
        })
        assert fields == [{"title": "file", "multiple": False}]

    def test_ref_and_allof_followed(self):
        fields = get_file_fields(_resolver(), {
            "content": {"multipart/form-data": {"schema": {"$ref": "#/components/schemas/MultiUpload"}}},
        })
        assert {"title": "file", "multiple": False} in fields
        assert {"title": "attachments", "multiple": True} in fields

    def test_no_file_fields(self):
        fields = get_file_fields(_resolver(), {
            "content": {"multipart/form-data": {"schema": {"$ref": "#/components/schemas/Filter"}}},
        })
        assert fields is None


class TestGetResponse:
    """Test response type selection."""

    def test_no_responses(self):
        assert get_response(_resolver(), None) == {"mediaType": "*/*", "type": "any"}

    def test_response_without_content(self):
        assert get_response(_resolver(), {"204": {"description": "gone"}})["type"] == "any"

    def test_200_ref(self):
        response = get_response(_resolver(), {
            "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}}},
        })
        assert response == {"mediaType": "application/json", "type": "API.Pet"}

    def test_default_before_200(self):
        response = get_response(_resolver(), {
            "200": {"content": {"application/json": {"schema": {"type": "string"}}}},
            "default": {"content": {"application/json": {"schema": {"type": "number"}}}},
        })
        assert response["type"] == "number"

    def test_201_fallback(self):
        response = get_response(_resolver(), {
            "201": {"content": {"application/json": {"schema": {"type": "boolean"}}}},
        })
        assert response["type"] == "boolean"

    def test_integer_status_codes(self):
        response = get_response(_resolver(), {
            200: {"content": {"application/json": {"schema": {"type": "boolean"}}}},
        })
        assert response["type"] == "boolean"

    def test_json_preferred(self):
        response = get_response(_resolver(), {
            "200": {
                "content": {
                    "text/plain": {"schema": {"type": "string"}},
                    "application/json": {"schema": {"type": "number"}},
                },
            },
        })
        assert response == {"mediaType": "application/json", "type": "number"}

    def test_inline_properties_carry_required(self):
        response = get_response(_resolver(), {
            "200": {
                "content": {
                    "application/json": {
                        "schema": {
                            "type": "object",
                            "properties": {"id": {"type": "number"}, "name": {"type": "string"}},
                            "required": ["name"],
                        },
                    },
                },
            },
        })
        assert response["type"] == "{ 'id'?: number; 'name': string; }"

    def test_envelope_unwrapped(self):
        responses = {
            "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Envelope"}}}},
        }
        assert get_response(_resolver(data_fields=["data"]), responses)["type"] == "API.Pet"

    def test_envelope_kept_without_data_fields(self):
        responses = {
            "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Envelope"}}}},
        }
        assert get_response(_resolver(), responses)["type"] == "API.Envelope"

    def test_envelope_field_missing_falls_back(self):
        responses = {
            "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Envelope"}}}},
        }
        assert get_response(_resolver(data_fields=["result"]), responses)["type"] == "API.Envelope"

    def test_document_not_mutated(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]}
        get_response(_resolver(), {"200": {"content": {"application/json": {"schema": schema}}}})
        assert "required" not in schema["properties"]["a"]
