"""Tests for the query model."""

import pytest
import yaml
from pydantic import ValidationError

from tilemosaic.models.query import DEFAULT_TILE_SERVER, Extents, GeoQuery


def make_query(**overrides):
    data = dict(latitude=40.267463, longitude=-111.635655, zoom=22, width=300, height=200)
    data.update(overrides)
    return GeoQuery(**data)


class TestExtents:
    """Test footprint extents."""

    def test_symmetric(self):
        extents = Extents.symmetric(300, 200)
        assert extents.to_tuple() == (150, 150, 100, 100)

    def test_rejects_negative_distance(self):
        with pytest.raises(ValidationError):
            Extents(west=-1, east=10, north=10, south=10)


class TestGeoQuery:
    """Test query validation and persistence."""

    def test_defaults(self):
        query = make_query()
        assert query.tile_server == DEFAULT_TILE_SERVER
        assert query.name == "satellite_map"
        assert query.quality == 90
        assert query.shift_x == 0.0
        assert query.extents is None

    def test_effective_extents_symmetric(self):
        assert make_query().effective_extents.to_tuple() == (150, 150, 100, 100)

    def test_effective_extents_override(self):
        extents = Extents(west=10, east=20, north=30, south=40)
        assert make_query(extents=extents).effective_extents == extents

    @pytest.mark.parametrize("field,value", [("width", 0), ("height", -5), ("zoom", -1), ("quality", 101)])
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            make_query(**{field: value})

    @pytest.mark.parametrize(
        "field,value",
        [
            ("latitude", 95.0),
            ("latitude", -85.06),
            ("longitude", 500.0),
            ("longitude", -180.01),
            ("zoom", 32),
        ],
    )
    def test_rejects_out_of_projection_range(self, field, value):
        with pytest.raises(ValidationError, match=field):
            make_query(**{field: value})

    def test_accepts_projection_limits(self):
        query = make_query(latitude=-85.0511, longitude=180.0, zoom=31)
        assert (query.latitude, query.longitude, query.zoom) == (-85.0511, 180.0, 31)

    def test_from_yaml_rejects_out_of_range(self, tmp_path):
        path = tmp_path / "query.yaml"
        path.write_text("latitude: 95.0\nlongitude: 0.0\nzoom: 10\nwidth: 10\nheight: 10\n")
        with pytest.raises(ValidationError):
            GeoQuery.from_yaml(path)

    def test_rejects_empty_tile_server(self):
        with pytest.raises(ValidationError):
            make_query(tile_server="")

    def test_identity_is_stable(self):
        assert make_query().identity == make_query().identity

    def test_identity_ignores_output_settings(self):
        assert make_query().identity == make_query(name="other", quality=50, shift_x=0.5).identity

    def test_identity_depends_on_footprint(self):
        assert make_query().identity != make_query(width=301).identity
        extents = Extents(west=150, east=150, north=100, south=100)
        assert make_query().identity != make_query(extents=extents).identity

    def test_yaml_roundtrip(self, tmp_path):
        path = tmp_path / "query.yaml"
        query = make_query(extents=Extents(west=10, east=20, north=30, south=40), name="field")
        query.to_yaml(path)

        loaded = GeoQuery.from_yaml(path)
        assert loaded == query
        assert loaded.identity == query.identity

    def test_yaml_omits_unset_extents(self, tmp_path):
        path = tmp_path / "query.yaml"
        make_query().to_yaml(path)
        data = yaml.safe_load(path.read_text())
        assert "extents" not in data
        assert data["zoom"] == 22
