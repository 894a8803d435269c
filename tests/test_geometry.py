import pytest

from clustershape.geometry import (
    Detector,
    SensorAreas,
    barrel_area,
    endcap_area,
    sensor_areas,
)


def test_mucol_vertex_barrel_constants():
    areas = sensor_areas(Detector.MUCOL_V1)
    assert areas.vxb[0] == 270.4
    assert areas.otb[2] == 249623.88


def test_maia_matches_mucol():
    assert sensor_areas(Detector.MAIA_V0) == sensor_areas(Detector.MUCOL_V1)


def test_music_uses_even_vertex_layers():
    areas = sensor_areas(Detector.MUSIC_V2)
    assert set(areas.vxb) == {0, 2, 4, 6, 8}
    assert set(areas.vxe) == {0, 2, 4, 6}
    assert areas.otb[2] == 286154.2


def test_plain_int_selects_geometry():
    assert sensor_areas(2) == sensor_areas(Detector.MUSIC_V2)


def test_unknown_geometry_has_no_areas():
    assert sensor_areas(7) == SensorAreas()


def test_region_maps_are_independent():
    first = sensor_areas(Detector.MUCOL_V1)
    first.ite[0] = 0.0
    assert sensor_areas(Detector.MUCOL_V1).ite[0] == 6639.65


@pytest.mark.parametrize("layer", range(8))
def test_barrel_vertex_layers(layer):
    areas = sensor_areas(Detector.MUCOL_V1)
    assert barrel_area(areas, float(layer)) == areas.vxb[layer]


def test_barrel_inner_and_outer_offsets():
    areas = sensor_areas(Detector.MUCOL_V1)
    assert barrel_area(areas, 12.0) == areas.itb[2]
    assert barrel_area(areas, 20.0) == areas.otb[0]


def test_barrel_outside_ranges_is_none():
    areas = sensor_areas(Detector.MUCOL_V1)
    assert barrel_area(areas, -1.0) is None
    assert barrel_area(areas, 30.0) is None


def test_barrel_missing_layer_raises():
    areas = sensor_areas(Detector.MUCOL_V1)
    with pytest.raises(KeyError):
        barrel_area(areas, 25.0)
    with pytest.raises(KeyError):
        barrel_area(sensor_areas(Detector.MUSIC_V2), 1.0)


def test_endcap_is_symmetric_in_z():
    areas = sensor_areas(Detector.MUCOL_V1)
    for value in (1.0, 5.0, 11.0, 17.0, 21.0, 24.0):
        assert endcap_area(areas, value) == endcap_area(areas, -value)


def test_endcap_layer_indices():
    areas = sensor_areas(Detector.MUCOL_V1)
    assert endcap_area(areas, -1.0) == areas.vxe[0]
    assert endcap_area(areas, 15.0) == areas.ite[4]
    assert endcap_area(areas, -21.0) == areas.ote[0]


@pytest.mark.parametrize("value", [0.0, 10.0, -10.0, 20.0, -20.0, 30.0, -30.0])
def test_endcap_gaps_are_none(value):
    assert endcap_area(sensor_areas(Detector.MUCOL_V1), value) is None


def test_endcap_missing_layer_raises():
    areas = sensor_areas(Detector.MUCOL_V1)
    with pytest.raises(KeyError):
        endcap_area(areas, 9.0)
    with pytest.raises(KeyError):
        endcap_area(SensorAreas(), 1.0)