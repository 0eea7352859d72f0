"""Tests for the command-line entry point."""

import json

from click.testing import CliRunner

from servicegen.cli import main

_DOC = {
    "openapi": "3.0.0",
    "info": {"title": "Pets", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {"tags": ["Pet Store"], "operationId": "ListPets"},
            "post": {
                "tags": ["pay"],
                "operationId": "pay",
                "x-antTech-description": {"antTechApiName": "/gateway/pay", "apiName": "trade.pay"},
            },
        },
    },
}


class TestCli:
    def test_generates_project(self, tmp_path):
        schema = tmp_path / "openapi.json"
        schema.write_text(json.dumps(_DOC))
        output = tmp_path / "out"

        result = CliRunner().invoke(main, [str(schema), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert (output / "api" / "typings.d.ts").exists()
        # CLI camel-cases by default
        assert (output / "api" / "petStore.ts").exists()

    def test_no_camel_case(self, tmp_path):
        schema = tmp_path / "openapi.json"
        schema.write_text(json.dumps(_DOC))
        output = tmp_path / "out"

        result = CliRunner().invoke(main, [str(schema), "-o", str(output), "--no-camel-case"])

        assert result.exit_code == 0, result.output
        assert (output / "api" / "PetStore.ts").exists()

    def test_config_file_and_overrides(self, tmp_path):
        schema = tmp_path / "openapi.json"
        schema.write_text(json.dumps(_DOC))
        config = tmp_path / "servicegen.yaml"
        config.write_text("projectName: services\nnamespace: Store\n")
        output = tmp_path / "out"

        result = CliRunner().invoke(main, [
            str(schema), "-o", str(output), "--config", str(config), "--namespace", "Shop",
        ])

        assert result.exit_code == 0, result.output
        typings = (output / "services" / "typings.d.ts").read_text()
        assert "declare namespace Shop {" in typings

    def test_mapping_file(self, tmp_path):
        schema = tmp_path / "openapi.json"
        schema.write_text(json.dumps(_DOC))
        mapping = tmp_path / "mapping.json"

        result = CliRunner().invoke(main, [
            str(schema), "-o", str(tmp_path / "out"), "--mapping-file", str(mapping),
        ])

        assert result.exit_code == 0, result.output
        assert json.loads(mapping.read_text()) == [{
            "rewritten_path": "/gateway/pay",
            "vendor_action": "trade.pay",
            "vendor_product": None,
            "vendor_version": None,
        }]

    def test_swagger_document_fails(self, tmp_path):
        schema = tmp_path / "swagger.json"
        schema.write_text('{"swagger": "2.0"}')

        result = CliRunner().invoke(main, [str(schema), "-o", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "Swagger" in result.output

    def test_missing_file_fails(self, tmp_path):
        result = CliRunner().invoke(main, [str(tmp_path / "nope.json"), "-o", str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_bad_config_option(self, tmp_path):
        schema = tmp_path / "openapi.json"
        schema.write_text(json.dumps(_DOC))
        config = tmp_path / "servicegen.yaml"
        config.write_text("mock: true\n")

        result = CliRunner().invoke(main, [str(schema), "-o", str(tmp_path / "out"), "--config", str(config)])

        assert result.exit_code == 2
