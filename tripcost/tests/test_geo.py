import json
import math

import pytest

from tripcost.geo import (
    GENERIC_DISTANCE_KM,
    UnresolvedLocationError,
    available_cities,
    default_city_table,
    haversine_km,
    load_city_table,
    resolve_distance,
)


def test_default_table_loads():
    table = default_city_table()
    assert table.version == 2
    assert len(table) > 100
    sp = table.locate("São Paulo")
    assert sp.region == "SP"
    assert math.isclose(sp.latitude, -23.5505)


def test_distance_sao_paulo_rio():
    d = resolve_distance("São Paulo", "Rio de Janeiro")
    assert 355 < d < 366


@pytest.mark.parametrize(
    "a,b",
    [
        ("São Paulo", "Rio de Janeiro"),
        ("Manaus", "Porto Alegre"),
        ("Lisboa", "Recife"),
    ],
)
def test_distance_symmetric_and_non_negative(a, b):
    assert resolve_distance(a, b) == pytest.approx(resolve_distance(b, a))
    assert resolve_distance(a, b) > 0
    assert resolve_distance(a, a) == 0


def test_distance_grows_with_separation():
    distances = [haversine_km(0, 0, 0, lon) for lon in (1, 10, 45, 90, 180)]
    assert distances == sorted(distances)
    # half the circumference along the equator
    assert distances[-1] == pytest.approx(math.pi * 6371, rel=1e-9)


def test_unknown_city_raises():
    with pytest.raises(UnresolvedLocationError) as exc:
        resolve_distance("Atlantis", "São Paulo")
    assert exc.value.name == "Atlantis"
    assert GENERIC_DISTANCE_KM == 2000.0


def test_lookup_is_exact_match():
    with pytest.raises(UnresolvedLocationError):
        default_city_table().locate("sao paulo")


def test_load_custom_table(tmp_path):
    path = tmp_path / "cities.json"
    path.write_text(
        json.dumps(
            {
                "version": 7,
                "cities": [
                    {"name": "A", "latitude": 0, "longitude": 0},
                    {"name": "B", "latitude": 0, "longitude": 1, "region": "X"},
                ],
            }
        ),
        encoding="utf-8",
    )
    table = load_city_table(path)
    assert table.version == 7
    assert available_cities(table) == ["A", "B"]
    assert table["A"].region == ""
    assert resolve_distance("A", "B", table) == pytest.approx(111.19, abs=0.01)


def test_duplicate_city_rejected(tmp_path):
    path = tmp_path / "cities.json"
    row = {"name": "A", "latitude": 0, "longitude": 0}
    path.write_text(json.dumps({"cities": [row, row]}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_city_table(path)
