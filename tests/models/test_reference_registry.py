"""
Unit tests for ReferencePointRegistry.
"""
import pytest

from geomapper.domains.location.models.reference_registry import (
    ReferencePointRegistry,
    RegistryChange,
    RegistryChangeKind,
)


def test_add_keeps_insertion_order(reference_points):
    registry = ReferencePointRegistry()
    registry.extend(reference_points)

    assert len(registry) == 6
    assert registry[0].map_x == 15
    assert registry[5].map_x == 155
    assert [p.map_x for p in registry] == [15, 43, 75, 40, 91, 155]


def test_add_returns_point_with_float_fields():
    registry = ReferencePointRegistry()
    point = registry.add(51, 11, 1, 2)
    assert point.lat == 51.0 and isinstance(point.map_x, float)


def test_listeners_receive_added_index_and_clear():
    registry = ReferencePointRegistry()
    changes = []
    registry.add_listener(changes.append)

    registry.add(51.0, 11.0, 1, 1)
    registry.add(51.1, 11.1, 2, 2)
    registry.clear()

    assert changes == [
        RegistryChange(RegistryChangeKind.ADDED, 0),
        RegistryChange(RegistryChangeKind.ADDED, 1),
        RegistryChange(RegistryChangeKind.CLEARED),
    ]
    assert len(registry) == 0


def test_registry_enforces_no_minimum():
    registry = ReferencePointRegistry()
    registry.add(51.0, 11.0, 1, 1)
    assert len(registry) == 1
    with pytest.raises(IndexError):
        registry[3]


def test_points_snapshot_is_immutable(populated_registry):
    snapshot = populated_registry.points
    populated_registry.add(51.0, 11.0, 0, 0)
    assert len(snapshot) == 6
    assert len(populated_registry.points) == 7
