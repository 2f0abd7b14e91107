"""
Near-duplicate grouping.

Texts are streamed through one :class:`~simhash_core.core.simmap.SimMap`.
Each text either repeats an exact key, lands within ``max_diff`` bits of an
earlier cluster's founding fingerprint, or founds a new cluster.  Cluster ids
are handed out in order of first appearance, so the returned groups are
ordered by their first member and members keep input order.

Membership is decided against a cluster's *founder* only, so the relation is
not transitive: two texts in different groups may still be close.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Iterator

from simhash_core.core.features import FeatureType
from simhash_core.core.hashing import HashMethod
from simhash_core.core.simhasher import SimHasher
from simhash_core.core.simmap import SimMap
from simhash_core.utils.metrics import LAT_GROUPING, measure_time

__all__ = [
    "group_indices",
    "group_indices_with",
    "group_texts",
    "group_with",
    "iter_group_ids",
]

log = logging.getLogger(__name__)


def iter_group_ids(hasher: SimHasher, texts: Iterable[str], max_diff: int) -> Iterator[int]:
    """Yield the cluster id of every text, ids counting up from 0."""
    sim_map: SimMap[str, int] = SimMap(hasher, max_diff)
    next_id = itertools.count()
    for text in texts:
        yield sim_map.maybe_insert_close_or(text, lambda: next(next_id))


def group_with(hasher: SimHasher, texts: Iterable[str], max_diff: int) -> list[list[str]]:
    """Group *texts* with an existing *hasher*, returning the texts themselves."""
    groups: dict[int, list[str]] = {}
    items = list(texts)
    for text, group_id in zip(items, iter_group_ids(hasher, items, max_diff), strict=True):
        groups.setdefault(group_id, []).append(text)
    return list(groups.values())


def group_indices_with(hasher: SimHasher, texts: Iterable[str], max_diff: int) -> list[list[int]]:
    """Group *texts* with an existing *hasher*, returning input positions."""
    groups: dict[int, list[int]] = {}
    for index, group_id in enumerate(iter_group_ids(hasher, texts, max_diff)):
        groups.setdefault(group_id, []).append(index)
    return list(groups.values())


def _resolve(
    max_diff: int | None,
    method: HashMethod | str | None,
    feature_type: FeatureType | str | None,
    window_size: int | None,
) -> tuple[SimHasher, int]:
    from simhash_core.settings import get_settings

    settings = get_settings()
    hasher = SimHasher(
        settings.hashing.method if method is None else method,
        settings.hashing.feature_type if feature_type is None else feature_type,
        settings.hashing.window_size if window_size is None else window_size,
    )
    return hasher, settings.index.max_diff if max_diff is None else max_diff


@measure_time(LAT_GROUPING)
def group_texts(
    texts: Iterable[str],
    max_diff: int | None = None,
    method: HashMethod | str | None = None,
    feature_type: FeatureType | str | None = None,
    window_size: int | None = None,
) -> list[list[str]]:
    """
    Group near-duplicate *texts*.

    Returns one list per cluster, clusters ordered by first appearance and
    members in input order.  Exact repeats always share a group.  Arguments
    left as ``None`` are taken from :func:`simhash_core.settings.get_settings`.
    """
    hasher, limit = _resolve(max_diff, method, feature_type, window_size)
    groups = group_with(hasher, texts, limit)
    log.debug("Grouped %d texts into %d groups with %r", sum(map(len, groups)), len(groups), hasher)
    return groups


@measure_time(LAT_GROUPING)
def group_indices(
    texts: Iterable[str],
    max_diff: int | None = None,
    method: HashMethod | str | None = None,
    feature_type: FeatureType | str | None = None,
    window_size: int | None = None,
) -> list[list[int]]:
    """Like :func:`group_texts` but returning input positions instead of texts."""
    hasher, limit = _resolve(max_diff, method, feature_type, window_size)
    groups = group_indices_with(hasher, texts, limit)
    log.debug("Grouped %d texts into %d groups with %r", sum(map(len, groups)), len(groups), hasher)
    return groups
