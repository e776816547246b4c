"""Candidate pools and placement order."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import networkx as nx

from .models import Guest, ProximityRule, ProximityRules, RandomizeOrder
from .sorting import Comparator, apply_randomize_order, with_population_tiebreak

logger = logging.getLogger(__name__)


@dataclass
class PrioritizedPools:
    """Per-population candidates with proximity-rule guests first."""

    internal: List[Guest] = field(default_factory=list)
    external: List[Guest] = field(default_factory=list)
    must_include: Set[str] = field(default_factory=set)


def build_prioritized_pools(
    internal_candidates: List[Guest],
    external_candidates: List[Guest],
    rules: ProximityRules,
    comparator: Comparator,
) -> PrioritizedPools:
    """Put guests named by any proximity rule ahead of unconstrained guests.

    Each population is split into must-include and regular guests, both halves
    sorted with ``comparator`` and concatenated must-include first.
    """
    must_include = rules.guest_ids()

    def prioritize(candidates: List[Guest]) -> List[Guest]:
        flagged = [g for g in candidates if g.id in must_include]
        regular = [g for g in candidates if g.id not in must_include]
        return comparator.sort(flagged) + comparator.sort(regular)

    return PrioritizedPools(
        internal=prioritize(internal_candidates),
        external=prioritize(external_candidates),
        must_include=must_include,
    )


def build_sit_together_clusters(rules: List[ProximityRule]) -> List[List[str]]:
    """Group guests chained by sit-together rules.

    Clusters come back sorted, largest first, members sorted by id.
    """
    graph = nx.Graph()
    for rule in rules:
        graph.add_edge(rule.guest1_id, rule.guest2_id)
    clusters = [sorted(component) for component in nx.connected_components(graph)]
    return sorted(clusters, key=lambda c: (-len(c), c[0]))


def reorder_for_clusters(
    ordered: List[Guest],
    rules: List[ProximityRule],
    comparator: Comparator,
) -> List[Guest]:
    """Pull every sit-together cluster up behind its earliest member.

    With A ranked first and B much later, ``[A, x, y, B]`` becomes ``[A, B, x, y]``.
    Clusters are transitive: A-B plus B-C groups all three. Guests outside any
    cluster keep their relative order.
    """
    if not rules or not ordered:
        return ordered

    position = {g.id: i for i, g in enumerate(ordered)}
    pulled: Set[str] = set()
    followers: Dict[str, List[Guest]] = {}

    for cluster in build_sit_together_clusters(rules):
        present = [gid for gid in cluster if gid in position]
        if len(present) < 2:
            continue
        leader = min(present, key=lambda gid: position[gid])
        members = comparator.sort(ordered[position[gid]] for gid in present if gid != leader)
        followers[leader] = members
        pulled.update(g.id for g in members)

    if not pulled:
        return ordered

    result: List[Guest] = []
    for guest in ordered:
        if guest.id in pulled:
            continue
        result.append(guest)
        result.extend(followers.get(guest.id, []))
    return result


def build_candidate_order(
    pools: PrioritizedPools,
    comparator: Comparator,
    rules: Optional[ProximityRules] = None,
    randomize: Optional[RandomizeOrder] = None,
) -> List[Guest]:
    """Unified placement order across both populations.

    Must-include guests of both populations come first, then regular guests,
    each group ordered by the population tie-break comparator. Sit-together
    clusters are then pulled together and, when enabled, regular guests are
    shuffled within their rank partitions.
    """
    placement_cmp = with_population_tiebreak(comparator)
    everyone = pools.internal + pools.external
    flagged = placement_cmp.sort(g for g in everyone if g.id in pools.must_include)
    regular = placement_cmp.sort(g for g in everyone if g.id not in pools.must_include)

    ordered = flagged + regular
    if rules is not None and rules.sit_together:
        ordered = reorder_for_clusters(ordered, rules.sit_together, placement_cmp)

    if randomize is not None and randomize.enabled and randomize.partitions:
        head = [g for g in ordered if g.id in pools.must_include]
        tail = [g for g in ordered if g.id not in pools.must_include]
        logger.debug("Randomizing %d regular guests, %d proximity guests fixed", len(tail), len(head))
        ordered = head + apply_randomize_order(tail, randomize)
    return ordered
