from seat_autofill.models import RandomizeOrder, RandomizePartition
from seat_autofill.pools import (
    build_candidate_order,
    build_prioritized_pools,
    build_sit_together_clusters,
    reorder_for_clusters,
)
from seat_autofill.sorting import make_comparator
from factories import guest, rules


def ids(guests):
    return [g.id for g in guests]


def test_rule_guests_come_first_in_each_pool():
    internal = [guest("i1", 1, True), guest("i2", 2, True), guest("i3", 9, True)]
    external = [guest("e1", 1), guest("e2", 8)]
    pools = build_prioritized_pools(internal, external, rules(away=[("i3", "e2")]), make_comparator())

    assert ids(pools.internal) == ["i3", "i1", "i2"]
    assert ids(pools.external) == ["e2", "e1"]
    assert pools.must_include == {"i3", "e2"}


def test_clusters_are_transitive_and_largest_first():
    clusters = build_sit_together_clusters(rules(together=[("x", "y"), ("a", "b"), ("b", "c")]).sit_together)
    assert clusters == [["a", "b", "c"], ["x", "y"]]


def test_cluster_members_pulled_behind_leader():
    ordered = [guest("a", 1), guest("x", 2), guest("y", 3), guest("b", 4)]
    result = reorder_for_clusters(ordered, rules(together=[("a", "b")]).sit_together, make_comparator())
    assert ids(result) == ["a", "b", "x", "y"]


def test_candidate_order_mixes_populations_by_priority():
    internal = [guest("i1", 2, True), guest("i2", 5, True)]
    external = [guest("e1", 1), guest("e2", 2), guest("e3", 3)]
    pools = build_prioritized_pools(internal, external, rules(), make_comparator())
    # Rank ties put internal guests first
    assert ids(build_candidate_order(pools, make_comparator())) == ["e1", "i1", "e2", "e3", "i2"]


def test_candidate_order_keeps_rule_guests_ahead():
    internal = [guest("i1", 1, True)]
    external = [guest("e1", 2), guest("e9", 9)]
    r = rules(together=[("e9", "i1")])
    pools = build_prioritized_pools(internal, external, r, make_comparator())
    assert ids(build_candidate_order(pools, make_comparator(), r)) == ["i1", "e9", "e1"]


def test_randomize_leaves_rule_guests_fixed():
    internal = [guest(f"i{n}", n, True) for n in range(1, 9)]
    r = rules(away=[("i8", "i7")])
    pools = build_prioritized_pools(internal, [], r, make_comparator())
    randomize = RandomizeOrder(enabled=True, partitions=[RandomizePartition(0, 100)], seed=3)
    order = build_candidate_order(pools, make_comparator(), r, randomize)

    assert ids(order[:2]) == ["i7", "i8"]
    assert sorted(ids(order[2:])) == [f"i{n}" for n in range(1, 7)]
