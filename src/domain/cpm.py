"""
Critical Path Method over an activity-on-node network.

Offsets are in days from an anchor (0 = anchor day). Links carry a type
(FS, SS, FF, SF) and a lag. The functions here are pure; callers map
offsets back to calendar dates.
"""

from collections import defaultdict, deque
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field


class CycleError(ValueError):
    """The dependency network contains a cycle."""

    def __init__(self, remaining: Sequence[Hashable]):
        self.remaining = list(remaining)
        super().__init__(
            f"Dependency cycle detected among {len(self.remaining)} activities: "
            f"{', '.join(str(r) for r in self.remaining)}"
        )


@dataclass(frozen=True)
class Activity:
    id: Hashable
    duration: float
    earliest_start: float = 0.0


@dataclass(frozen=True)
class Link:
    predecessor: Hashable
    successor: Hashable
    type: str = "FS"
    lag: float = 0.0


@dataclass
class ActivityTiming:
    id: Hashable
    duration: float
    early_start: float
    early_finish: float
    late_start: float
    late_finish: float
    total_float: float
    free_float: float
    is_critical: bool
    is_near_critical: bool
    position: int


@dataclass
class CPMResult:
    timings: dict[Hashable, ActivityTiming]
    order: list[Hashable]
    project_duration: float
    links: list[Link] = field(default_factory=list)

    @property
    def critical_path(self) -> list[Hashable]:
        """Critical activities ordered by early start, then topological position."""
        critical = [t for t in self.timings.values() if t.is_critical]
        critical.sort(key=lambda t: (t.early_start, t.position))
        return [t.id for t in critical]


def topological_order(ids: Sequence[Hashable], links: Iterable[Link]) -> list[Hashable]:
    """
    Kahn's algorithm. Ties keep the input order of ``ids``.
    Raises CycleError naming the activities that could not be ordered.
    """
    indegree = {i: 0 for i in ids}
    successors: dict[Hashable, list[Hashable]] = defaultdict(list)
    for link in links:
        if link.predecessor in indegree and link.successor in indegree:
            successors[link.predecessor].append(link.successor)
            indegree[link.successor] += 1

    queue = deque(i for i in ids if indegree[i] == 0)
    order: list[Hashable] = []
    while queue:
        node = queue.popleft()
        order.append(node)
        for succ in successors[node]:
            indegree[succ] -= 1
            if indegree[succ] == 0:
                queue.append(succ)

    if len(order) != len(indegree):
        placed = set(order)
        raise CycleError([i for i in ids if i not in placed])
    return order


def is_reachable(links: Iterable[Link], source: Hashable, target: Hashable) -> bool:
    """True when ``target`` can be reached from ``source`` by following links forward."""
    successors: dict[Hashable, list[Hashable]] = defaultdict(list)
    for link in links:
        successors[link.predecessor].append(link.successor)

    seen = {source}
    stack = [source]
    while stack:
        node = stack.pop()
        if node == target:
            return True
        for succ in successors[node]:
            if succ not in seen:
                seen.add(succ)
                stack.append(succ)
    return False


def creates_cycle(links: Iterable[Link], predecessor: Hashable, successor: Hashable) -> bool:
    """Would adding ``predecessor -> successor`` close a cycle?"""
    if predecessor == successor:
        return True
    return is_reachable(links, successor, predecessor)


def _start_constraint(link: Link, pred: ActivityTiming, duration: float) -> float:
    if link.type == "SS":
        return pred.early_start + link.lag
    if link.type == "FF":
        return pred.early_finish + link.lag - duration
    if link.type == "SF":
        return pred.early_start + link.lag - duration
    return pred.early_finish + link.lag


def _finish_constraint(link: Link, succ: ActivityTiming, duration: float) -> float:
    if link.type == "SS":
        return succ.late_start - link.lag + duration
    if link.type == "FF":
        return succ.late_finish - link.lag
    if link.type == "SF":
        return succ.late_finish - link.lag + duration
    return succ.late_start - link.lag


def _slack(link: Link, pred: ActivityTiming, succ: ActivityTiming) -> float:
    if link.type == "SS":
        return succ.early_start - link.lag - pred.early_start
    if link.type == "FF":
        return succ.early_finish - link.lag - pred.early_finish
    if link.type == "SF":
        return succ.early_finish - link.lag - pred.early_start
    return succ.early_start - link.lag - pred.early_finish


def compute_cpm(
    activities: Sequence[Activity],
    links: Iterable[Link],
    near_critical_days: float = 1.0,
    epsilon: float = 1e-6,
) -> CPMResult:
    """
    Forward and backward pass over the network.

    Links that reference unknown activities are ignored. Early starts are
    never negative.
    """
    by_id = {a.id: a for a in activities}
    if len(by_id) != len(activities):
        raise ValueError("Duplicate activity ids")

    network = [
        link for link in links if link.predecessor in by_id and link.successor in by_id
    ]
    order = topological_order([a.id for a in activities], network)

    preds: dict[Hashable, list[Link]] = defaultdict(list)
    succs: dict[Hashable, list[Link]] = defaultdict(list)
    for link in network:
        preds[link.successor].append(link)
        succs[link.predecessor].append(link)

    timings: dict[Hashable, ActivityTiming] = {}

    # Forward pass
    for position, node in enumerate(order):
        activity = by_id[node]
        d = activity.duration
        es = activity.earliest_start
        for link in preds[node]:
            es = max(es, _start_constraint(link, timings[link.predecessor], d))
        es = max(es, 0.0)
        timings[node] = ActivityTiming(
            id=node,
            duration=d,
            early_start=es,
            early_finish=es + d,
            late_start=0.0,
            late_finish=0.0,
            total_float=0.0,
            free_float=0.0,
            is_critical=False,
            is_near_critical=False,
            position=position,
        )

    project_duration = max((t.early_finish for t in timings.values()), default=0.0)

    # Backward pass
    for node in reversed(order):
        timing = timings[node]
        lf = project_duration
        for link in succs[node]:
            lf = min(lf, _finish_constraint(link, timings[link.successor], timing.duration))
        timing.late_finish = lf
        timing.late_start = lf - timing.duration

    for node in order:
        timing = timings[node]
        timing.total_float = timing.late_start - timing.early_start
        if succs[node]:
            free = min(_slack(link, timing, timings[link.successor]) for link in succs[node])
        else:
            free = project_duration - timing.early_finish
        timing.free_float = max(free, 0.0)
        timing.is_critical = abs(timing.total_float) <= epsilon
        timing.is_near_critical = epsilon < timing.total_float <= near_critical_days

    return CPMResult(
        timings=timings, order=order, project_duration=project_duration, links=network
    )


# --- Roll-ups ---


def rollup_hierarchy(
    parent_of: Mapping[Hashable, Hashable | None], schedulable: Iterable[Hashable]
) -> tuple[set[Hashable], dict[Hashable, list[Hashable]]]:
    """
    Children per node and the leaf set: schedulable nodes without children.
    Parents missing from ``parent_of`` are ignored.
    """
    children: dict[Hashable, list[Hashable]] = defaultdict(list)
    for node, parent in parent_of.items():
        if parent is not None and parent in parent_of:
            children[parent].append(node)
    leaves = {n for n in schedulable if n in parent_of and not children.get(n)}
    return leaves, children


def leaves_under(
    node: Hashable, leaves: set[Hashable], children: Mapping[Hashable, list[Hashable]]
) -> list[Hashable]:
    if node in leaves:
        return [node]
    found: list[Hashable] = []
    seen: set[Hashable] = set()
    stack = list(children.get(node, []))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        if current in leaves:
            found.append(current)
        stack.extend(children.get(current, []))
    return found


def expand_links(
    links: Iterable[Link], leaves: set[Hashable], children: Mapping[Hashable, list[Hashable]]
) -> list[Link]:
    """Links on roll-ups apply to every leaf below them."""
    expanded: list[Link] = []
    seen: set[Link] = set()
    for link in links:
        for pred in leaves_under(link.predecessor, leaves, children):
            for succ in leaves_under(link.successor, leaves, children):
                leaf_link = Link(pred, succ, link.type, link.lag)
                if pred != succ and leaf_link not in seen:
                    seen.add(leaf_link)
                    expanded.append(leaf_link)
    return expanded
