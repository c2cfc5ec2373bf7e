"""
Tests for geoindex.spatial.reproject — CRS tables, detection and CRSReprojector.
"""
from __future__ import annotations

import copy
import math
from unittest.mock import MagicMock, patch

import pytest
from pyproj.exceptions import ProjError

from geoindex.spatial.errors import TransformFailure, UnsupportedCRS
from geoindex.spatial.reproject import (
    EPSG_DEFINITIONS,
    CRSReprojector,
    PyprojCRSTable,
    crs_table_for,
    detect_crs_code,
    normalize_crs_code,
)
from tests.conftest import make_feature_collection


# Web Mercator metres for lon/lat 10° (and lat 10°).
MERC_10 = 1113194.9079327357
MERC_LAT_10 = 1118889.9748579594


def _point(x, y, crs="EPSG:3857") -> dict:
    return {
        "type": "Point",
        "coordinates": [x, y],
        "crs": {"type": "name", "properties": {"name": crs}},
    }


@pytest.fixture()
def reprojector() -> CRSReprojector:
    return CRSReprojector(EPSG_DEFINITIONS)


# ═══════════════════════════════════════════════════════════════════
# CRS code handling
# ═══════════════════════════════════════════════════════════════════
class TestCRSCodes:
    @pytest.mark.parametrize("raw,expected", [
        ("EPSG:3857", "EPSG:3857"),
        ("epsg:3857", "EPSG:3857"),
        ("urn:ogc:def:crs:EPSG::3857", "EPSG:3857"),
        ("urn:ogc:def:crs:EPSG:6.3:27700", "EPSG:27700"),
        ("urn:ogc:def:crs:OGC:1.3:CRS84", "OGC:CRS84"),
        (3857, "EPSG:3857"),
        ("4326", "EPSG:4326"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_crs_code(raw) == expected

    def test_detect_name_member(self):
        assert detect_crs_code(_point(0, 0)) == "EPSG:3857"

    def test_detect_epsg_member(self):
        doc = {"type": "Point", "coordinates": [0, 0],
               "crs": {"type": "EPSG", "properties": {"code": 3067}}}
        assert detect_crs_code(doc) == "EPSG:3067"

    def test_detect_missing(self):
        with pytest.raises(UnsupportedCRS):
            detect_crs_code({"type": "Point", "coordinates": [0, 0]})

    def test_detect_unrecognised_member(self):
        doc = {"type": "Point", "coordinates": [0, 0],
               "crs": {"type": "link", "properties": {"href": "http://x"}}}
        with pytest.raises(UnsupportedCRS):
            detect_crs_code(doc)

    @pytest.mark.parametrize("props", ["EPSG:3857", ["EPSG:3857"], 3857])
    def test_detect_non_mapping_properties(self, props):
        doc = {"type": "Point", "coordinates": [0, 0],
               "crs": {"type": "name", "properties": props}}
        with pytest.raises(UnsupportedCRS):
            detect_crs_code(doc)


class TestTables:
    def test_builtin_has_utm_zones(self):
        assert "+zone=33" in EPSG_DEFINITIONS["EPSG:32633"]
        assert "+south" in EPSG_DEFINITIONS["EPSG:32733"]

    def test_crs_table_for(self):
        assert crs_table_for("builtin") is EPSG_DEFINITIONS
        assert isinstance(crs_table_for("pyproj"), PyprojCRSTable)

    def test_crs_table_for_unknown(self):
        with pytest.raises(ValueError):
            crs_table_for("nope")

    def test_pyproj_table_lookup(self):
        table = PyprojCRSTable()
        assert "Pseudo-Mercator" in table["EPSG:3857"]
        assert table.get("EPSG:999999") is None
        assert "EPSG:4326" in list(table)[:10000]
        assert len(table) > 1000


# ═══════════════════════════════════════════════════════════════════
# transform (strict)
# ═══════════════════════════════════════════════════════════════════
class TestTransform:
    def test_web_mercator_point(self, reprojector):
        out = reprojector.transform(_point(MERC_10, MERC_LAT_10))
        lon, lat = out["coordinates"]
        assert lon == pytest.approx(10.0, abs=1e-6)
        assert lat == pytest.approx(10.0, abs=1e-6)

    def test_origin(self, reprojector):
        out = reprojector.transform(_point(0.0, 0.0))
        assert out["coordinates"] == pytest.approx([0.0, 0.0], abs=1e-9)

    def test_utm_central_meridian(self, reprojector):
        out = reprojector.transform(_point(500000.0, 0.0, crs="EPSG:32633"))
        assert out["coordinates"] == pytest.approx([15.0, 0.0], abs=1e-6)

    def test_epsg_member_and_urn(self, reprojector):
        a = _point(MERC_10, 0.0, crs="urn:ogc:def:crs:EPSG::3857")
        b = {"type": "Point", "coordinates": [MERC_10, 0.0],
             "crs": {"type": "EPSG", "properties": {"code": 3857}}}
        assert reprojector.transform(a) == reprojector.transform(b)

    def test_crs_member_dropped(self, reprojector):
        out = reprojector.transform(_point(0.0, 0.0))
        assert "crs" not in out

    def test_feature_collection_shape(self, reprojector):
        ring = [[0, 0], [MERC_10, 0], [MERC_10, MERC_LAT_10], [0, MERC_LAT_10], [0, 0]]
        doc = make_feature_collection(
            {"type": "Polygon", "coordinates": [ring]}, crs="EPSG:3857",
        )
        out = reprojector.transform(doc)
        feature = out["features"][0]
        assert feature["properties"] == {"name": "sample"}
        coords = feature["geometry"]["coordinates"]
        assert len(coords) == 1 and len(coords[0]) == 5
        assert coords[0][2] == pytest.approx([10.0, 10.0], abs=1e-6)

    def test_multipolygon_and_lines(self, reprojector):
        doc = make_feature_collection(
            {"type": "MultiPolygon",
             "coordinates": [[[[0, 0], [MERC_10, 0], [0, MERC_LAT_10], [0, 0]]]]},
            crs="EPSG:3857",
        )
        doc["features"].append({
            "type": "Feature", "properties": {},
            "geometry": {"type": "LineString", "coordinates": [[0, 0], [MERC_10, 0]]},
        })
        out = reprojector.transform(doc)
        assert out["features"][0]["geometry"]["coordinates"][0][0][1] == pytest.approx([10.0, 0.0], abs=1e-6)
        assert out["features"][1]["geometry"]["coordinates"][1] == pytest.approx([10.0, 0.0], abs=1e-6)

    def test_geometry_collection_and_null_geometry(self, reprojector):
        doc = {
            "type": "FeatureCollection",
            "crs": {"type": "name", "properties": {"name": "EPSG:3857"}},
            "features": [
                {"type": "Feature", "properties": {}, "geometry": None},
                {"type": "Feature", "properties": {}, "geometry": {
                    "type": "GeometryCollection",
                    "geometries": [
                        {"type": "Point", "coordinates": [MERC_10, 0]},
                        {"type": "MultiPoint", "coordinates": [[0, 0], [MERC_10, 0]]},
                    ],
                }},
            ],
        }
        out = reprojector.transform(doc)
        assert out["features"][0]["geometry"] is None
        geoms = out["features"][1]["geometry"]["geometries"]
        assert geoms[0]["coordinates"] == pytest.approx([10.0, 0.0], abs=1e-6)
        assert len(geoms[1]["coordinates"]) == 2

    def test_extra_dimensions_kept(self, reprojector):
        out = reprojector.transform(_point(0.0, 0.0) | {"coordinates": [0.0, 0.0, 42.5]})
        assert out["coordinates"][2] == 42.5

    def test_bbox_recomputed(self, reprojector):
        doc = {
            "type": "LineString",
            "coordinates": [[0, 0], [MERC_10, MERC_LAT_10]],
            "bbox": [0, 0, MERC_10, MERC_LAT_10],
            "crs": {"type": "name", "properties": {"name": "EPSG:3857"}},
        }
        out = reprojector.transform(doc)
        assert out["bbox"] == pytest.approx([0.0, 0.0, 10.0, 10.0], abs=1e-6)

    def test_input_not_mutated(self, reprojector):
        doc = make_feature_collection(
            {"type": "Point", "coordinates": [MERC_10, 0]}, crs="EPSG:3857",
        )
        before = copy.deepcopy(doc)
        reprojector.transform(doc)
        assert doc == before

    def test_unknown_code(self):
        with pytest.raises(UnsupportedCRS):
            CRSReprojector({}).transform(_point(0, 0))

    def test_unsupported_type(self, reprojector):
        with pytest.raises(TransformFailure):
            reprojector.transform({"type": "Circle", "coordinates": [0, 0],
                                   "crs": {"type": "name", "properties": {"name": "EPSG:3857"}}})

    def test_malformed_coordinates(self, reprojector):
        with pytest.raises(TransformFailure):
            reprojector.transform(_point(0, 0) | {"coordinates": "0,0"})

    def test_not_a_mapping(self, reprojector):
        with pytest.raises(TransformFailure):
            reprojector.transform([1, 2, 3])

    def test_proj_error(self, reprojector):
        transformer = MagicMock()
        transformer.transform.side_effect = ProjError("boom")
        with patch("geoindex.spatial.reproject._transformer_for", return_value=transformer):
            with pytest.raises(TransformFailure):
                reprojector.transform(_point(0, 0))

    def test_non_finite_result(self, reprojector):
        transformer = MagicMock()
        transformer.transform.return_value = (math.inf, 0.0)
        with patch("geoindex.spatial.reproject._transformer_for", return_value=transformer):
            with pytest.raises(TransformFailure):
                reprojector.transform(_point(0, 0))

    def test_bad_definition(self):
        reprojector = CRSReprojector({"EPSG:3857": "+proj=definitely-not-a-projection"})
        with pytest.raises(TransformFailure):
            reprojector.transform(_point(0, 0))

    def test_coordinate_overflow(self, reprojector):
        with pytest.raises(TransformFailure):
            reprojector.transform(_point(10**400, 0))

    def test_unhashable_definition(self):
        reprojector = CRSReprojector({"EPSG:3857": {"proj": "merc"}})
        with pytest.raises(TransformFailure):
            reprojector.transform(_point(0, 0))


# ═══════════════════════════════════════════════════════════════════
# reproject (best effort)
# ═══════════════════════════════════════════════════════════════════
class TestReproject:
    def test_success(self, reprojector):
        out = reprojector.reproject(_point(MERC_10, 0.0))
        assert out["coordinates"] == pytest.approx([10.0, 0.0], abs=1e-6)

    def test_empty_lookup_returns_input(self):
        doc = make_feature_collection(
            {"type": "Point", "coordinates": [MERC_10, 0]}, crs="EPSG:3857",
        )
        before = copy.deepcopy(doc)
        out = CRSReprojector({}).reproject(doc)
        assert out is doc
        assert out == before

    def test_missing_crs_returns_input(self, reprojector):
        doc = make_feature_collection({"type": "Point", "coordinates": [10, 20]})
        assert reprojector.reproject(doc) is doc

    def test_transform_failure_returns_input(self, reprojector):
        doc = _point(0, 0)
        transformer = MagicMock()
        transformer.transform.side_effect = ProjError("boom")
        with patch("geoindex.spatial.reproject._transformer_for", return_value=transformer):
            assert reprojector.reproject(doc) is doc

    def test_malformed_returns_input(self, reprojector):
        doc = {"type": "FeatureCollection",
               "crs": {"type": "name", "properties": {"name": "EPSG:3857"}}}
        assert reprojector.reproject(doc) is doc

    @pytest.mark.parametrize("value", [None, "text", 12])
    def test_non_mapping_returns_input(self, reprojector, value):
        assert reprojector.reproject(value) is value

    def test_failure_logged(self, caplog):
        with caplog.at_level("WARNING", logger="geoindex.spatial.reproject"):
            CRSReprojector({}).reproject(_point(0, 0))
        assert "returning input unchanged" in caplog.text

    @pytest.mark.parametrize("props", ["EPSG:3857", ["EPSG:3857"], 3857])
    def test_non_mapping_crs_properties_returns_input(self, reprojector, props):
        doc = _point(MERC_10, 0.0)
        doc["crs"]["properties"] = props
        assert reprojector.reproject(doc) is doc

    def test_coordinate_overflow_returns_input(self, reprojector):
        doc = _point(10**400, 0)
        assert reprojector.reproject(doc) is doc

    def test_unhashable_definition_returns_input(self):
        doc = _point(MERC_10, 0.0)
        assert CRSReprojector({"EPSG:3857": {"proj": "merc"}}).reproject(doc) is doc
