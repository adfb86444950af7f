from __future__ import annotations

import unittest
from dataclasses import dataclass, field, fields

from entmux.meta import tags
from entmux.meta.tags import efield, request_key, storage_key


@dataclass
class Named:
    both: str = efield(json="j_both", bson="b_both")
    json_only: str = efield(json="j_only")
    bson_only: str = efield(bson="b_only")
    neither: str = efield()
    json_absent: str = efield(json="-", bson="b_fallback")
    empty: str = efield(json="", bson="")
    plain: str = ""


def _field(name: str):
    for fld in fields(Named):
        if fld.name == name:
            return fld
    raise KeyError(name)


class TestNameResolution(unittest.TestCase):
    def test_request_key_prefers_json_then_bson_then_name(self) -> None:
        self.assertEqual(request_key(_field("both")), "j_both")
        self.assertEqual(request_key(_field("json_only")), "j_only")
        self.assertEqual(request_key(_field("bson_only")), "b_only")
        self.assertEqual(request_key(_field("neither")), "neither")

    def test_storage_key_prefers_bson_then_json_then_name(self) -> None:
        self.assertEqual(storage_key(_field("both")), "b_both")
        self.assertEqual(storage_key(_field("json_only")), "j_only")
        self.assertEqual(storage_key(_field("bson_only")), "b_only")
        self.assertEqual(storage_key(_field("neither")), "neither")

    def test_dash_and_empty_mean_absent(self) -> None:
        self.assertEqual(request_key(_field("json_absent")), "b_fallback")
        self.assertEqual(request_key(_field("empty")), "empty")
        self.assertEqual(storage_key(_field("empty")), "empty")

    def test_untagged_field_uses_its_name(self) -> None:
        self.assertEqual(request_key(_field("plain")), "plain")
        self.assertEqual(storage_key(_field("plain")), "plain")


class TestEfield(unittest.TestCase):
    def test_boolean_tags_are_rendered_as_text(self) -> None:
        fld = efield(axis=True, index=False)
        self.assertEqual(fld.metadata[tags.AXIS_TAG], "true")
        self.assertEqual(fld.metadata[tags.INDEX_TAG], "false")

    def test_unset_tags_are_not_recorded(self) -> None:
        fld = efield(json="name")
        self.assertEqual(dict(fld.metadata), {tags.JSON_TAG: "name"})
        self.assertEqual(tags.tag(fld, tags.BSON_TAG), "")

    def test_extra_metadata_is_kept(self) -> None:
        fld = efield(json="name", metadata={"doc": "display name"})
        self.assertEqual(fld.metadata["doc"], "display name")

    def test_defaults_are_forwarded(self) -> None:
        @dataclass
        class WithDefaults:
            count: int = efield(json="count", default=3)
            items: list = efield(json="items", default_factory=list)

        value = WithDefaults()
        self.assertEqual(value.count, 3)
        self.assertEqual(value.items, [])

    def test_plain_dataclass_fields_have_no_tags(self) -> None:
        fld = field(default="")
        self.assertFalse(tags.defined(tags.tag(fld, tags.ID_TAG)))


if __name__ == "__main__":
    unittest.main()
