"""
Crosswalk graph over identifier spaces.

Nodes are identifier spaces, edges are active crosswalk rules. The graph
answers one-hop lookups in constant time and discovers bounded multi-hop
paths with a breadth-first search that never revisits a space already on the
current branch, so traversal terminates even when the rule set has cycles.
"""

from collections import deque

from golden_layer.core.exceptions import CrosswalkConfigError
from golden_layer.core.models import CrosswalkPath, CrosswalkRule, KeySpace
from golden_layer.observability import metrics
from golden_layer.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_HOPS = 5


class CrosswalkGraph:
    """
    Directed graph of identifier spaces connected by crosswalk rules.

    Rules are kept in insertion order; that order breaks ties between paths
    of equal length.
    """

    def __init__(
        self,
        rules: list[CrosswalkRule] | None = None,
        paths: list[CrosswalkPath] | None = None,
        spaces: list[KeySpace] | None = None,
        max_hops: int = DEFAULT_MAX_HOPS,
    ):
        """
        Initialize the graph.

        Args:
            rules: Crosswalk rules (edges)
            paths: Precomputed multi-hop paths
            spaces: Registered identifier spaces, used for validation only
            max_hops: Hop ceiling for path discovery

        Raises:
            CrosswalkConfigError: If rules or paths are inconsistent
        """
        if max_hops < 1:
            raise CrosswalkConfigError(f"max_hops must be at least 1, got {max_hops}")
        self.max_hops = max_hops
        self._spaces: dict[str, KeySpace] = {s.name: s for s in spaces or []}
        self._rules_by_id: dict[int, CrosswalkRule] = {}
        self._rules_by_pair: dict[tuple[str, str], list[CrosswalkRule]] = {}
        self._outgoing: dict[str, list[CrosswalkRule]] = {}
        self._paths: dict[tuple[tuple[str, str], int], list[CrosswalkPath]] = {}

        for rule in rules or []:
            self.add_rule(rule)
        for path in paths or []:
            self.add_path(path)

    # =======================
    # MUTATION
    # =======================

    def add_rule(self, rule: CrosswalkRule) -> None:
        """
        Register a rule.

        Raises:
            CrosswalkConfigError: On a duplicate id, an unknown space, or a
                second rule for the same pair with identical conditions
        """
        if rule.crosswalk_id in self._rules_by_id:
            raise CrosswalkConfigError(f"Duplicate crosswalk_id {rule.crosswalk_id}")
        if self._spaces:
            for space in rule.pair:
                if space not in self._spaces:
                    raise CrosswalkConfigError(
                        f"Crosswalk rule {rule.crosswalk_id} references unknown key space '{space}'"
                    )

        siblings = self._rules_by_pair.setdefault(rule.pair, [])
        for other in siblings:
            if other.conditions == rule.conditions:
                raise CrosswalkConfigError(
                    f"Crosswalk rules {other.crosswalk_id} and {rule.crosswalk_id} map "
                    f"{rule.from_space} -> {rule.to_space} under the same conditions"
                )

        siblings.append(rule)
        self._rules_by_id[rule.crosswalk_id] = rule
        self._outgoing.setdefault(rule.from_space, []).append(rule)

    def add_path(self, path: CrosswalkPath) -> None:
        """
        Register a precomputed path.

        Raises:
            CrosswalkConfigError: If the path exceeds max_hops or is not a
                connected chain of known rules from from_space to to_space
        """
        if path.hop_count > self.max_hops:
            raise CrosswalkConfigError(
                f"Path {path.from_space} -> {path.to_space} has {path.hop_count} hops, "
                f"maximum is {self.max_hops}"
            )

        current = path.from_space
        visited = {current}
        for crosswalk_id in path.crosswalk_ids:
            rule = self._rules_by_id.get(crosswalk_id)
            if rule is None:
                raise CrosswalkConfigError(f"Path references unknown crosswalk_id {crosswalk_id}")
            if rule.from_space != current or rule.to_space in visited:
                raise CrosswalkConfigError(
                    f"Path {path.from_space} -> {path.to_space} is not an acyclic chain at rule {crosswalk_id}"
                )
            current = rule.to_space
            visited.add(current)
        if current != path.to_space:
            raise CrosswalkConfigError(
                f"Path {path.from_space} -> {path.to_space} ends at '{current}'"
            )

        key = ((path.from_space, path.to_space), path.hop_count)
        self._paths.setdefault(key, []).append(path)

    # =======================
    # LOOKUPS
    # =======================

    def rule(self, crosswalk_id: int) -> CrosswalkRule | None:
        return self._rules_by_id.get(crosswalk_id)

    def rules_between(self, from_space: str, to_space: str) -> list[CrosswalkRule]:
        """All active rules for a pair, in insertion order."""
        return [r for r in self._rules_by_pair.get((from_space, to_space), []) if r.is_active]

    def direct_rule(self, from_space: str, to_space: str) -> CrosswalkRule | None:
        """
        Look up the active one-hop rule between two spaces.

        Returns:
            The first active rule for the pair, or None when there is none
        """
        for rule in self._rules_by_pair.get((from_space, to_space), ()):
            if rule.is_active:
                return rule
        return None

    def precomputed_paths(self, from_space: str, to_space: str) -> list[CrosswalkPath]:
        """Registered paths for a pair, ordered by hop count."""
        found: list[CrosswalkPath] = []
        for hops in range(1, self.max_hops + 1):
            found.extend(self._paths.get(((from_space, to_space), hops), []))
        return [p for p in found if self._path_is_active(p)]

    def find_paths(self, from_space: str, to_space: str, max_hops: int | None = None) -> list[CrosswalkPath]:
        """
        Discover every acyclic path between two spaces.

        Breadth-first over active rules. A branch stops when the next space
        is already on that branch or when it would exceed max_hops. Paths are
        returned by ascending hop count, ties in rule insertion order.

        Args:
            from_space: Start space
            to_space: Target space
            max_hops: Hop ceiling, defaults to the graph's ceiling

        Returns:
            Discovered paths; empty when the spaces are not connected
        """
        ceiling = self.max_hops if max_hops is None else max_hops
        if ceiling < 1 or from_space == to_space:
            return []

        found: list[CrosswalkPath] = []
        # Each frontier entry: (current space, rule ids so far, spaces on this branch)
        frontier: deque[tuple[str, tuple[int, ...], frozenset[str]]] = deque()
        frontier.append((from_space, (), frozenset({from_space})))

        while frontier:
            space, rule_ids, on_branch = frontier.popleft()
            if len(rule_ids) >= ceiling:
                continue
            for rule in self._outgoing.get(space, ()):
                if not rule.is_active or rule.to_space in on_branch:
                    continue
                next_ids = rule_ids + (rule.crosswalk_id,)
                if rule.to_space == to_space:
                    found.append(CrosswalkPath(
                        from_space=from_space,
                        to_space=to_space,
                        crosswalk_ids=list(next_ids),
                        hop_count=len(next_ids),
                        reliability="DISCOVERED",
                    ))
                    continue
                frontier.append((rule.to_space, next_ids, on_branch | {rule.to_space}))

        return found

    def resolve_paths(self, from_space: str, to_space: str) -> list[CrosswalkPath]:
        """Precomputed paths when registered, otherwise discovered ones."""
        return self.precomputed_paths(from_space, to_space) or self.find_paths(from_space, to_space)

    def can_translate(self, from_space: str, to_space: str) -> bool:
        """Whether some rule or path between the spaces carries transformations."""
        rule = self.direct_rule(from_space, to_space)
        if rule is not None and rule.transformation is not None:
            return True
        return any(self._path_translates(p) for p in self.resolve_paths(from_space, to_space))

    def translate(self, value: str | None, from_space: str, to_space: str) -> str | None:
        """
        Translate a value between identifier spaces.

        Uses the direct rule when one exists, otherwise the first resolved
        path whose every hop carries a transformation.

        Returns:
            Translated value, or None when nothing resolves or the value does
            not match the expected shape
        """
        if value is None:
            return None

        rule = self.direct_rule(from_space, to_space)
        if rule is not None and rule.transformation is not None:
            result = rule.apply(value)
            metrics.record_crosswalk_lookup("direct" if result is not None else "malformed")
            return result

        for path in self.resolve_paths(from_space, to_space):
            if not self._path_translates(path):
                continue
            result = value
            for crosswalk_id in path.crosswalk_ids:
                result = self._rules_by_id[crosswalk_id].apply(result)
            metrics.record_crosswalk_lookup("path" if result is not None else "malformed")
            return result

        logger.debug(f"No translatable crosswalk route {from_space} -> {to_space}")
        metrics.record_crosswalk_lookup("unresolved")
        return None

    def _path_is_active(self, path: CrosswalkPath) -> bool:
        return all(
            (rule := self._rules_by_id.get(i)) is not None and rule.is_active
            for i in path.crosswalk_ids
        )

    def _path_translates(self, path: CrosswalkPath) -> bool:
        return all(self._rules_by_id[i].transformation is not None for i in path.crosswalk_ids)

    @property
    def spaces(self) -> dict[str, KeySpace]:
        return dict(self._spaces)

    @property
    def rules(self) -> list[CrosswalkRule]:
        return list(self._rules_by_id.values())

    def __len__(self) -> int:
        return len(self._rules_by_id)
