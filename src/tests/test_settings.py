"""Tests for server settings parsing and the server's rename command helpers."""

import logging

import pytest
from lsprotocol import types as lsp

from src.devex.lsp.settings import ServerSettings


class TestServerSettings:
    def test_defaults(self):
        settings = ServerSettings.from_dict({})
        assert settings.relations is None
        assert settings.groups is None
        assert settings.log_level == "INFO"
        assert settings.relation_names() == []

    def test_full_payload(self):
        settings = ServerSettings.from_dict(
            {"relations": ["up", "down"], "groups": ["Children"], "logLevel": "debug"})
        assert settings.relations == ["up", "down"]
        assert settings.groups == ["Children"]
        assert settings.log_level == "DEBUG"
        assert settings.numeric_log_level == logging.DEBUG

    def test_nested_under_tql_key(self):
        settings = ServerSettings.from_dict({"tql": {"relations": ["same"]}, "other": {}})
        assert settings.relations == ["same"]

    def test_unknown_keys_ignored(self):
        assert ServerSettings.from_dict({"colour": "blue"}) == ServerSettings()

    @pytest.mark.parametrize("payload", [
        {"relations": "up"},
        {"relations": None},
        {"groups": 3},
        {"logLevel": "loud"},
        {"logLevel": 10},
    ])
    def test_wrong_types_fall_back(self, payload):
        assert ServerSettings.from_dict(payload) == ServerSettings()

    def test_non_string_entries_dropped(self):
        assert ServerSettings.from_dict({"relations": ["up", 3, None, "down"]}).relations == [
            "up", "down"]

    @pytest.mark.parametrize("payload", [None, [], "relations", 42])
    def test_non_object_payload(self, payload):
        assert ServerSettings.from_dict(payload) == ServerSettings()

    def test_update_keeps_base_values(self):
        base = ServerSettings(relations=["up"], log_level="WARNING")
        settings = ServerSettings.from_dict({"groups": ["A"]}, base)
        assert settings.relations == ["up"]
        assert settings.groups == ["A"]
        assert settings.log_level == "WARNING"
        assert base.groups is None

    def test_relation_names_is_a_fresh_list(self):
        settings = ServerSettings(relations=["up"])
        names = settings.relation_names()
        names.append("down")
        assert settings.relations == ["up"]


class TestRenameRelationCommand:
    def test_workspace_edit(self):
        from src.devex.lsp.server import rename_relation_edit

        source = 'group "A"\nfrom up where x = 1'
        edit = rename_relation_edit("file:///a.tql", source, "up", "parent")
        (uri, edits), = edit.changes.items()
        assert uri == "file:///a.tql"
        assert edits[0].new_text == 'group "A"\nfrom parent where x = 1'
        assert edits[0].range == lsp.Range(start=lsp.Position(line=0, character=0),
                                           end=lsp.Position(line=1, character=19))

    def test_no_edit_when_unchanged(self):
        from src.devex.lsp.server import rename_relation_edit

        assert rename_relation_edit("file:///a.tql", 'group "A" from r1 wher', "r1", "r2") is None

    @pytest.mark.parametrize("params,expected", [
        ({"oldName": "up"}, "up"),
        ({"old_name": "up"}, "up"),
        ({}, None),
    ])
    def test_param_reader(self, params, expected):
        from src.devex.lsp.server import _param

        assert _param(params, "oldName", "old_name") == expected
