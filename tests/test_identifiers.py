import pytest

from oas_normalizer.errors import UniquenessExhausted
from oas_normalizer.transform.identifiers import IdentifierRegistry, candidate_operation_id


class TestCandidateOperationId:
    def test_method_and_path(self):
        assert candidate_operation_id("GET", "/accounts/{account_id}/zones") == "get_accounts_account_id_zones"

    def test_root_path_degenerates_to_method(self):
        assert candidate_operation_id("DELETE", "/") == "delete"
        assert candidate_operation_id("get", "") == "get"

    def test_invalid_characters_replaced(self):
        assert candidate_operation_id("post", "/ip-lists/{list.id}") == "post_ip_lists_list_id"

    def test_empty_segments_dropped(self):
        assert candidate_operation_id("get", "//zones///") == "get_zones"

    def test_custom_separator(self):
        assert candidate_operation_id("put", "/a/b", separator="__") == "put__a__b"


class TestIdentifierRegistry:
    def test_claim_free_candidate(self):
        registry = IdentifierRegistry()
        assert registry.claim("get_zones") == "get_zones"
        assert "get_zones" in registry

    def test_collision_gets_suffix(self):
        registry = IdentifierRegistry()
        assert registry.claim("get_zones") == "get_zones"
        assert registry.claim("get_zones") == "get_zones_2"
        assert registry.claim("get_zones") == "get_zones_3"
        assert len(registry) == 3

    def test_suffix_skips_taken_names(self):
        registry = IdentifierRegistry()
        registry.reserve("get_zones")
        registry.reserve("get_zones_2")
        assert registry.claim("get_zones") == "get_zones_3"

    def test_reserve_reports_duplicates(self):
        registry = IdentifierRegistry()
        assert registry.reserve("listZones") is True
        assert registry.reserve("listZones") is False

    def test_exhausted(self):
        registry = IdentifierRegistry(max_suffix=3)
        for _ in range(3):
            registry.claim("op")
        with pytest.raises(UniquenessExhausted) as exc:
            registry.claim("op", "#/paths/~1a/get")
        assert exc.value.location == "#/paths/~1a/get"
