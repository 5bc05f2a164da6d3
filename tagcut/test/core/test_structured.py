from __future__ import annotations

from tagcut.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_list,
    get_str,
    get_str_list,
    get_table,
    is_str_dict,
)


class TestNarrowing:
    def test_is_str_dict(self) -> None:
        assert is_str_dict({"a": 1}) is True
        assert is_str_dict({}) is True
        assert is_str_dict({1: "a"}) is False
        assert is_str_dict(["a"]) is False

    def test_as_str_dict_and_list(self) -> None:
        assert as_str_dict({"k": "v"}) == {"k": "v"}
        assert as_str_dict("nope") is None
        assert as_obj_list([1, "x"]) == [1, "x"]
        assert as_obj_list({"a": 1}) is None


class TestGetters:
    TABLE: dict[str, object] = {
        "name": "  widget  ",
        "blank": "   ",
        "flag": True,
        "count": 3,
        "nested": {"a": 1},
        "items": ["a", "b"],
        "mixed": ["a", 1],
    }

    def test_get_str_strips(self) -> None:
        assert get_str(self.TABLE, "name") == "widget"
        assert get_str(self.TABLE, "blank") is None
        assert get_str(self.TABLE, "count") is None
        assert get_str(self.TABLE, "missing") is None

    def test_get_bool(self) -> None:
        assert get_bool(self.TABLE, "flag") is True
        assert get_bool(self.TABLE, "count") is None

    def test_get_int_rejects_bool(self) -> None:
        assert get_int(self.TABLE, "count") == 3
        assert get_int(self.TABLE, "flag") is None

    def test_get_table_and_list(self) -> None:
        assert get_table(self.TABLE, "nested") == {"a": 1}
        assert get_table(self.TABLE, "items") is None
        assert get_list(self.TABLE, "items") == ["a", "b"]

    def test_get_str_list(self) -> None:
        assert get_str_list(self.TABLE, "items") == ["a", "b"]
        assert get_str_list(self.TABLE, "mixed") is None
        assert get_str_list(self.TABLE, "missing") is None
