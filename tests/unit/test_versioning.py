import pytest

from services.manufacturing.versioning import (
    next_version,
    parse_major_minor,
    suggest_copy_name,
    suggest_copy_version,
)


def _boms(product_id, *versions):
    return [{"product_id": product_id, "version": v} for v in versions]


class TestNextVersion:
    def test_first_bom_of_a_product_is_1_0(self):
        assert next_version([], "P1") == "1.0"

    def test_only_versions_of_the_same_product_count(self):
        boms = _boms("P2", "7.3")
        assert next_version(boms, "P1") == "1.0"

    def test_highest_major_minor_gets_its_minor_bumped(self):
        boms = _boms("P1", "1.0", "2.0", "1.5")
        assert next_version(boms, "P1") == "2.1"

    def test_third_segment_is_ignored(self):
        boms = _boms("P1", "1.2.9", "1.3")
        assert next_version(boms, "P1") == "1.4"

    def test_non_numeric_major_reads_as_one(self):
        boms = _boms("P1", "draft", "1.0")
        assert next_version(boms, "P1") == "1.1"

    def test_accepts_objects_with_attributes(self):
        class Row:
            def __init__(self, product_id, version):
                self.product_id = product_id
                self.version = version

        assert next_version([Row("P1", "3.4")], "P1") == "3.5"


@pytest.mark.parametrize("version,expected", [
    ("2", (2, 0)),
    ("2.7", (2, 7)),
    ("0.3", (1, 3)),
    ("abc", (1, 0)),
    ("4.x", (4, 0)),
    ("", (1, 0)),
])
def test_parse_major_minor(version, expected):
    assert parse_major_minor(version) == expected


class TestCopySuggestion:
    def test_bumps_numeric_last_segment(self):
        assert suggest_copy_version("2.3") == "2.4"

    def test_bumps_last_of_three_segments(self):
        assert suggest_copy_version("1.2.9") == "1.2.10"

    def test_non_numeric_last_segment_gets_suffix(self):
        assert suggest_copy_version("2.3-rc") == "2.3-rc.1"

    def test_single_segment_gets_suffix(self):
        assert suggest_copy_version("2") == "2.1"

    def test_copy_name(self):
        assert suggest_copy_name("Widget BOM", "2.4") == "Widget BOM (2.4)"
