"""Tests for the grid codec and the cabling table."""

import math

import pytest

from strip_region_cabling.geometry import MAXLAYERS, MAXSUBDETS, Position, PositionIndex, SubDet
from strip_region_cabling.region_cabling import (
    CablingTable,
    RegionCabling,
    element_index,
    layer,
    region_of_element,
    subdet,
)


@pytest.fixture
def cabling() -> RegionCabling:
    return RegionCabling(10, 8, 2.5)


def test_region_dimensions(cabling):
    d_eta, d_phi = cabling.region_dimensions()
    assert d_eta == pytest.approx(0.5)
    assert d_phi == pytest.approx(math.pi / 4)


def test_region_position_index_round_trip(cabling):
    for region in range(cabling.n_regions):
        assert cabling.region(cabling.position_index(region)) == region


def test_position_index_of_region(cabling):
    assert cabling.position_index(0) == PositionIndex(0, 0)
    assert cabling.position_index(7) == PositionIndex(0, 7)
    assert cabling.position_index(8) == PositionIndex(1, 0)
    assert cabling.position_index(79) == PositionIndex(9, 7)


def test_position_is_cell_centre(cabling):
    position = cabling.position(PositionIndex(3, 5))
    assert position.eta == pytest.approx(0.5 * 3 + 0.25)
    assert position.phi == pytest.approx(math.pi / 4 * 5 + math.pi / 8)
    assert cabling.position_of_region(cabling.region(PositionIndex(3, 5))) == position


def test_position_round_trip_lands_in_same_cell(cabling):
    for eta in range(cabling.etadivisions):
        for phi in range(cabling.phidivisions):
            index = PositionIndex(eta, phi)
            assert cabling.index_of_position(cabling.position(index)) == index


def test_index_of_position_clamps_eta(cabling):
    assert cabling.index_of_position(Position(-0.3, 0.1)).eta == 0
    assert cabling.index_of_position(Position(5.0, 0.1)).eta == 9
    assert cabling.index_of_position(Position(42.0, 0.1)).eta == 9


def test_index_of_position_wraps_phi(cabling):
    assert cabling.index_of_position(Position(1.0, -0.1)).phi == 7
    assert cabling.index_of_position(Position(1.0, 2 * math.pi + 0.1)).phi == 0
    assert cabling.index_of_position(Position(1.0, -2 * math.pi - 0.1)).phi == 7


def test_region_of_position(cabling):
    assert cabling.region_of_position(Position(1.1, 0.9)) == 2 * 8 + 1


def test_position_from_detector(cabling):
    assert cabling.position_from_detector(-2.5, 1.0) == Position(0.0, 1.0)
    assert cabling.region_of_position(cabling.position_from_detector(0.1, 0.2)) == 5 * 8


def test_periodic_index_wraps_phi():
    cabling = RegionCabling(4, 8, 2.5)
    assert cabling.periodic_index(PositionIndex(1, -1)) == PositionIndex(1, 7)
    assert cabling.periodic_index(PositionIndex(1, 8)) == PositionIndex(1, 0)
    assert cabling.periodic_index(PositionIndex(1, 3)) == PositionIndex(1, 3)


def test_periodic_index_rejects_eta_out_of_range():
    cabling = RegionCabling(4, 8, 2.5)
    assert cabling.periodic_index(PositionIndex(4, 0)) is None
    assert cabling.periodic_index(PositionIndex(-1, 0)) is None
    assert cabling.periodic_index(PositionIndex(3, 0)) == PositionIndex(3, 0)


def test_periodic_index_does_not_mutate():
    cabling = RegionCabling(4, 8, 2.5)
    index = PositionIndex(2, -1)
    cabling.periodic_index(index)
    assert index == PositionIndex(2, -1)


def test_element_index_layout():
    assert element_index(0, SubDet.TIB, 0) == 0
    assert element_index(0, SubDet.TOB, 3) == 13
    assert element_index(2, SubDet.TEC, 9) == 2 * MAXSUBDETS * MAXLAYERS + 3 * MAXLAYERS + 9


def test_element_index_bijection(cabling):
    for index in range(cabling.n_elements):
        assert element_index(region_of_element(index), subdet(index), layer(index)) == index


def test_element_decode():
    index = element_index(17, SubDet.TID, 2)
    assert region_of_element(index) == 17
    assert subdet(index) is SubDet.TID
    assert layer(index) == 2
    assert RegionCabling.subdet(index) is SubDet.TID


def test_unknown_subdet_value_decodes_without_fault():
    assert SubDet(4) is SubDet.UNKNOWN


@pytest.mark.parametrize(
    "region, sd, ly",
    [(-1, SubDet.TIB, 0), (0, SubDet.UNKNOWN, 0), (0, SubDet.TIB, MAXLAYERS), (0, SubDet.TIB, -1)],
)
def test_element_index_rejects_invalid_input(region, sd, ly):
    with pytest.raises(ValueError):
        element_index(region, sd, ly)


def test_element_index_of_position(cabling):
    position = cabling.position(PositionIndex(4, 6))
    assert cabling.element_index_of_position(position, SubDet.TOB, 1) == element_index(4 * 8 + 6, SubDet.TOB, 1)


@pytest.mark.parametrize(
    "args",
    [(0, 8, 2.5), (4, 0, 2.5), (4, 8, 0.0), (4, 8, -1.0), (4.0, 8, 2.5), (4, 8, float("nan")), (True, 8, 2.5)],
)
def test_malformed_construction_parameters(args):
    with pytest.raises(ValueError):
        RegionCabling(*args)


def test_grid_parameters_are_read_only(cabling):
    with pytest.raises(AttributeError):
        cabling.etadivisions = 3


def test_set_and_get_region_cabling(cabling):
    table = CablingTable.empty(cabling.n_regions)
    cabling.set_region_cabling(table)
    assert cabling.get_region_cabling() is table
    assert cabling.has_cabling
    assert cabling.element_cabling(5) == {}


def test_set_region_cabling_accepts_sequence(cabling):
    cabling.set_region_cabling([{} for _ in range(cabling.n_elements)])
    assert len(cabling.get_region_cabling()) == cabling.n_elements


def test_set_region_cabling_rejects_wrong_capacity(cabling):
    with pytest.raises(ValueError, match="needs 3200"):
        cabling.set_region_cabling(CablingTable.empty(cabling.n_regions - 1))


def test_get_region_cabling_before_install(cabling):
    with pytest.raises(RuntimeError):
        cabling.get_region_cabling()


def test_cabling_table_rejects_partial_region():
    with pytest.raises(ValueError):
        CablingTable([{} for _ in range(MAXSUBDETS * MAXLAYERS + 1)])


def test_cabling_table_views():
    table = CablingTable.empty(3)
    table[element_index(1, SubDet.TOB, 2)][1234] = []
    assert table.n_regions == 3
    assert len(table.region_elements(1)) == MAXSUBDETS * MAXLAYERS
    assert table.region_elements(1)[SubDet.TOB * MAXLAYERS + 2] == {1234: []}
    assert table.wedge(1, SubDet.TOB)[2] == {1234: []}
    assert table.element(element_index(1, SubDet.TOB, 2)) is table.wedge(1, SubDet.TOB)[2]


def test_index_of_position_clamps_infinite_eta(cabling):
    assert cabling.index_of_position(Position(math.inf, 0.1)) == PositionIndex(9, 0)
    assert cabling.index_of_position(Position(-math.inf, 0.1)) == PositionIndex(0, 0)
    assert cabling.region_of_position(Position(math.inf, 0.9)) == 9 * 8 + 1


@pytest.mark.parametrize(
    "position",
    [Position(math.nan, 0.1), Position(1.0, math.nan), Position(1.0, math.inf), Position(1.0, -math.inf)],
)
def test_index_of_position_rejects_undefined_position(cabling, position):
    with pytest.raises(ValueError, match="no grid cell"):
        cabling.index_of_position(position)
