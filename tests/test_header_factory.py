"""Tests for header_factory."""

import pytest

from azure_blast import header_factory


class TestCreate:
    def test_drops_blank_keys_and_keeps_last_value(self):
        headers = header_factory.create(("tenant", "fontys"), ("", "ignore"), ("key", "v1"), ("key", "v2"))

        assert dict(headers) == {"tenant": "fontys", "key": "v2"}
        assert len(headers) == 2

    def test_last_of_three_duplicates_wins(self):
        headers = header_factory.create(("k", "v1"), ("k", "v2"), ("k", "v3"))
        assert dict(headers) == {"k": "v3"}

    def test_drops_none_and_whitespace_keys(self):
        headers = header_factory.create((None, 1), ("   ", 2), ("\t", 3), ("kept", 4))
        assert dict(headers) == {"kept": 4}

    def test_keys_are_case_sensitive(self):
        headers = header_factory.create(("Key", 1), ("key", 2))
        assert dict(headers) == {"Key": 1, "key": 2}

    def test_no_pairs_gives_empty_map(self):
        assert dict(header_factory.create()) == {}

    def test_result_is_read_only(self):
        headers = header_factory.create(("a", 1))
        with pytest.raises(TypeError):
            headers["b"] = 2


class TestFromMapping:
    def test_none_gives_empty_map(self):
        assert dict(header_factory.from_mapping(None)) == {}

    def test_copy_is_independent_of_source(self):
        source = {"a": 1}
        headers = header_factory.from_mapping(source)

        source["a"] = 99
        source["b"] = 2

        assert dict(headers) == {"a": 1}


class TestMerge:
    def test_override_wins_on_shared_key(self):
        merged = header_factory.merge({"k": "base", "b": 1}, {"k": "override", "o": 2})
        assert dict(merged) == {"k": "override", "b": 1, "o": 2}

    def test_merge_with_empty_is_identity(self):
        headers = {"a": 1, "b": 2}
        assert dict(header_factory.merge(headers, {})) == headers
        assert dict(header_factory.merge({}, headers)) == headers

    def test_none_inputs_are_empty(self):
        assert dict(header_factory.merge(None, None)) == {}
        assert dict(header_factory.merge(None, {"a": 1})) == {"a": 1}
        assert dict(header_factory.merge({"a": 1}, None)) == {"a": 1}

    def test_result_does_not_alias_inputs(self):
        base = {"a": 1}
        overrides = {"b": 2}
        merged = header_factory.merge(base, overrides)

        base["a"] = 10
        overrides["c"] = 3

        assert dict(merged) == {"a": 1, "b": 2}

    def test_empty_returns_new_empty_map(self):
        assert dict(header_factory.empty()) == {}
