"""Hierarchy builder - turn a flat agent list into a forest of role-nested trees."""

from collections import Counter
from typing import Iterable, Iterator, Optional

from pennyekart.models.agent import Agent, AgentNode, AgentRole, ROLE_HIERARCHY
from pennyekart.services.role_chain import parent_role, role_rank
from pennyekart.utils.logging import get_structured_logger
from pennyekart.utils.settings import get_hierarchy_max_depth

logger = get_structured_logger(__name__)


def _sort_key(agent: Agent) -> tuple[int, str]:
    return (role_rank(agent.role), agent.name.lower())


def sort_agents(agents: Iterable[Agent]) -> list[Agent]:
    """Order agents by role (top first) then name."""
    return sorted(agents, key=_sort_key)


def build_hierarchy(agents: Iterable[Agent]) -> list[AgentNode]:
    """
    Build a forest from a flat agent list.

    An agent whose parent is not in the list becomes a root, so filtered
    views degrade to a forest instead of failing. The map lookup means
    malformed parent chains cannot make this loop.
    """
    nodes: dict[str, AgentNode] = {}
    for agent in agents:
        data = agent.model_dump(exclude={"children"})
        nodes[agent.id] = AgentNode(**data, children=[])

    roots: list[AgentNode] = []
    for node in nodes.values():
        parent_id = node.parent_agent_id
        # A self reference cannot resolve
        parent = nodes.get(parent_id) if parent_id and parent_id != node.id else None
        if parent is not None:
            parent.children.append(node)
        else:
            roots.append(node)

    return roots


def sort_forest(roots: list[AgentNode]) -> list[AgentNode]:
    """Sort roots and every children list in place by (role, name)."""
    roots.sort(key=_sort_key)
    for _, node in walk_hierarchy(roots):
        node.children.sort(key=_sort_key)
    return roots


def walk_hierarchy(
    roots: Iterable[AgentNode],
    max_depth: Optional[int] = None,
) -> Iterator[tuple[int, AgentNode]]:
    """
    Iterative pre-order walk yielding (depth, node).

    Already visited nodes and branches deeper than max_depth are skipped,
    so a corrupted parent assignment cannot hang a renderer.
    """
    if max_depth is None:
        max_depth = get_hierarchy_max_depth()

    stack: list[tuple[int, AgentNode]] = [(0, root) for root in reversed(list(roots))]
    visited: set[str] = set()

    while stack:
        depth, node = stack.pop()
        if node.id in visited:
            logger.warning("Agent revisited during hierarchy walk", agent_id=node.id)
            continue
        visited.add(node.id)
        yield depth, node

        if not node.children:
            continue
        if depth + 1 > max_depth:
            logger.warning(
                "Hierarchy depth limit reached",
                agent_id=node.id,
                max_depth=max_depth,
                skipped_children=len(node.children)
            )
            continue
        for child in reversed(node.children):
            stack.append((depth + 1, child))


def forest_to_dicts(roots: Iterable[AgentNode], max_depth: Optional[int] = None) -> list[dict]:
    """JSON-ready nested dicts assembled from the guarded walk."""
    forest: list[dict] = []
    path: list[dict] = []
    for depth, node in walk_hierarchy(roots, max_depth=max_depth):
        item = node.model_dump(mode="json", exclude={"children"})
        item["children"] = []
        if depth == 0:
            forest.append(item)
        else:
            path[depth - 1]["children"].append(item)
        del path[depth:]
        path.append(item)
    return forest


def count_nodes(roots: Iterable[AgentNode]) -> int:
    """Number of nodes reachable from the roots."""
    return sum(1 for _ in walk_hierarchy(roots))


def find_chain_violations(agents: Iterable[Agent]) -> list[Agent]:
    """Agents whose resolvable parent is not exactly one role level up."""
    agent_list = list(agents)
    by_id = {agent.id: agent for agent in agent_list}
    violations = []
    for agent in agent_list:
        if not agent.parent_agent_id:
            continue
        parent = by_id.get(agent.parent_agent_id)
        if parent is None:
            continue
        if parent.id == agent.id or parent.role != parent_role(agent.role):
            violations.append(agent)
    return violations


def summarize_agents(agents: Iterable[Agent]) -> dict:
    """Per-role counts plus the customer total across PROs."""
    agent_list = list(agents)
    counts = Counter(agent.role for agent in agent_list)
    return {
        "total": len(agent_list),
        "by_role": {role.value: counts.get(role, 0) for role in ROLE_HIERARCHY},
        "total_customers": sum(
            agent.customer_count for agent in agent_list if agent.role == AgentRole.PRO
        ),
    }
