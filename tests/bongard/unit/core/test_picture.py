import random

import numpy as np
import pytest

from bongard.core.models import GeneratorParams, IdCounters, PictureState
from bongard.core.picture import Picture, build_picture
from bongard.core.shapes import circle, square


def test_populate_nested_picture(nested_picture) -> None:
    assert nested_picture.inside == [(1, 0)]
    assert nested_picture.east == [(2, 0), (2, 1)]
    assert nested_picture.north == [(2, 0), (2, 1)]


def test_populate_vertical_stack_has_no_east_pair(default_params) -> None:
    picture = Picture(default_params)
    picture.shapes.extend([square(10, 10, 10), square(10, 40, 10)])
    picture.populate()
    assert picture.inside == []
    assert picture.east == []
    assert picture.north == [(1, 0)]


def test_populate_always_records_one_north_direction(default_params) -> None:
    picture = Picture(default_params)
    picture.shapes.extend([square(10, 10, 10), square(40, 10, 10)])
    picture.populate()
    assert picture.east == [(1, 0)]
    # Neither shape is strictly north of the other; the later one is recorded.
    assert picture.north == [(1, 0)]


def test_populate_is_idempotent(nested_picture) -> None:
    nested_picture.populate()
    assert nested_picture.inside == [(1, 0)]
    assert len(nested_picture.north) == 2


def test_relation_matrix_matches_pairs(nested_picture) -> None:
    inside = nested_picture.relation_matrix("inside")
    assert inside.shape == (3, 3)
    assert inside.dtype == np.bool_
    assert inside[1, 0]
    assert int(inside.sum()) == 1
    with pytest.raises(ValueError):
        nested_picture.relation_matrix("south")


def test_is_valid_rejects_partial_overlap_and_overflow(default_params) -> None:
    picture = Picture(default_params)
    picture.shapes.append(square(10, 10, 60))
    assert picture.is_valid(circle(30, 30, 10))
    assert picture.is_valid(square(80, 80, 8))
    assert not picture.is_valid(square(60, 60, 20))
    assert not picture.is_valid(square(95, 5, 5))


def test_create_picture_success_sets_valid_state(seeded_rng) -> None:
    params = GeneratorParams(min_insides=0)
    picture = Picture(params)
    assert picture.state is PictureState.UNPOPULATED
    assert picture.create_picture(4, seeded_rng, max_tries=100_000)
    assert picture.state is PictureState.VALID
    assert picture.size == 4


def test_create_picture_fails_when_slot_exhausted(seeded_rng) -> None:
    params = GeneratorParams(min_size=98, max_size=98, min_insides=0)
    picture = Picture(params)
    assert not picture.create_picture(1, seeded_rng, max_tries=50)
    assert picture.state is PictureState.FAILED
    assert picture.shapes == []


def test_create_picture_fails_below_min_insides(seeded_rng) -> None:
    picture = Picture(GeneratorParams(min_insides=1))
    assert not picture.create_picture(1, seeded_rng, max_tries=100_000)
    assert picture.state is PictureState.FAILED
    assert picture.size == 1


def test_assign_ids_requires_valid_picture(default_params) -> None:
    picture = Picture(default_params)
    with pytest.raises(ValueError):
        picture.assign_ids(IdCounters())


def test_assign_ids_is_consecutive(nested_picture) -> None:
    counters = IdCounters(picture_id=7, shape_id=40)
    nested_picture.assign_ids(counters)
    assert nested_picture.id == 7
    assert [shape.id for shape in nested_picture.shapes] == [40, 41, 42]
    assert counters.picture_id == 8
    assert counters.shape_id == 43
    assert nested_picture.id_pairs("inside") == [(41, 40)]


def test_built_pictures_satisfy_placement_invariants() -> None:
    rng = random.Random(2024)
    params = GeneratorParams()
    for _ in range(25):
        size = rng.randint(params.min_elements, params.max_elements)
        picture = build_picture(rng, params, size, max_tries=20_000)
        assert picture.state is PictureState.VALID
        assert picture.size == size
        assert len(picture.inside) >= params.min_insides
        for index, shape in enumerate(picture.shapes):
            assert not shape.overflow()
            assert max(shape.outer.bounds) < 100
            for other in picture.shapes[index + 1 :]:
                assert not shape.conflict(other)


def test_built_picture_relation_sets_are_consistent() -> None:
    rng = random.Random(99)
    params = GeneratorParams()
    for _ in range(20):
        picture = build_picture(rng, params, 5, max_tries=20_000)
        n = picture.size
        inside_pairs = {frozenset(pair) for pair in picture.inside}
        for a, b in picture.inside:
            assert a != b
            assert picture.shapes[a].is_inside(picture.shapes[b])
            assert not picture.shapes[b].is_inside(picture.shapes[a])
        for name in ("east", "north"):
            unordered = [frozenset(pair) for pair in picture.relation_pairs(name)]
            assert len(unordered) == len(set(unordered))
            assert not inside_pairs & set(unordered)
        total_pairs = n * (n - 1) // 2
        assert len(picture.north) == total_pairs - len(picture.inside)
        assert len(picture.east) <= total_pairs - len(picture.inside)


def test_build_picture_is_reproducible_with_seed() -> None:
    params = GeneratorParams()
    first = build_picture(random.Random(7), params, 5, max_tries=20_000)
    second = build_picture(random.Random(7), params, 5, max_tries=20_000)
    assert [str(shape) for shape in first.shapes] == [str(shape) for shape in second.shapes]
    assert [shape.kind for shape in first.shapes] == [shape.kind for shape in second.shapes]
    for name in ("inside", "east", "north"):
        assert first.relation_pairs(name) == second.relation_pairs(name)


def test_picture_margin_drives_conflict_and_inside(default_params) -> None:
    picture = Picture(default_params, margin=10)
    picture.shapes.append(square(10, 10, 60))
    assert not picture.is_valid(square(15, 15, 10))
    assert picture.is_valid(square(20, 20, 10))

    picture.shapes.append(square(15, 15, 10))
    picture.populate()
    assert picture.inside == []


def test_build_picture_keeps_custom_margin_between_shapes() -> None:
    rng = random.Random(31)
    params = GeneratorParams(min_elements=2, max_elements=3, min_size=4, max_size=40, min_insides=0)
    for _ in range(100):
        picture = build_picture(rng, params, 3, margin=10, max_tries=20_000)
        assert picture.margin == 10
        inside = picture.relation_matrix("inside")
        for a, shape in enumerate(picture.shapes):
            for b, other in enumerate(picture.shapes):
                if a == b:
                    continue
                if inside[a, b]:
                    assert shape.is_inside(other, margin=10)
                elif not inside[b, a]:
                    assert not shape.is_overlapped(other, margin=10)


def test_inside_matrix_agrees_with_shape_predicate_for_every_pair() -> None:
    rng = random.Random(7)
    params = GeneratorParams()
    for _ in range(20):
        picture = build_picture(rng, params, 6, max_tries=20_000)
        inside = picture.relation_matrix("inside")
        for a, shape in enumerate(picture.shapes):
            for b, other in enumerate(picture.shapes):
                assert inside[a, b] == shape.is_inside(other)


def test_assign_ids_replaces_shapes_without_mutating_them(nested_picture) -> None:
    original = list(nested_picture.shapes)
    nested_picture.assign_ids(IdCounters(shape_id=5))
    assert [shape.id for shape in original] == [-1, -1, -1]
    assert [shape.outer for shape in nested_picture.shapes] == [shape.outer for shape in original]


@pytest.mark.slow
def test_default_parameters_hold_placement_invariants_at_scale() -> None:
    rng = random.Random(8)
    params = GeneratorParams()
    for _ in range(10_000):
        size = rng.randint(params.min_elements, params.max_elements)
        picture = build_picture(rng, params, size)
        assert picture.size == size
        assert len(picture.inside) >= params.min_insides
        for index, shape in enumerate(picture.shapes):
            assert not shape.overflow()
            for other in picture.shapes[index + 1 :]:
                assert not shape.conflict(other)
