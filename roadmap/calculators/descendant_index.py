from typing import Dict, List, Iterable

from roadmap.core.types import GraphNode


class DescendantIndex:
    """Precomputed pre-order descendant lists for every node of the parent/child forest.

    Each child is followed by its own descendants; siblings keep document
    order. Leaves map to an empty list. The walk is iterative so deep
    hierarchies do not hit the recursion limit.
    """

    @staticmethod
    def compute(nodes: Iterable[GraphNode]) -> Dict[str, List[str]]:
        nodes = list(nodes)
        children: Dict[str, List[str]] = {n.id: [] for n in nodes}
        for node in nodes:
            if node.parent_id and node.parent_id in children:
                children[node.parent_id].append(node.id)

        result: Dict[str, List[str]] = {}
        for node in nodes:
            order: List[str] = []
            seen = {node.id}
            stack = list(reversed(children[node.id]))
            while stack:
                current = stack.pop()
                if current in seen:  # parent cycle in unvalidated input
                    continue
                seen.add(current)
                order.append(current)
                stack.extend(reversed(children[current]))
            result[node.id] = order
        return result

    @staticmethod
    def is_complete(descendants: Dict[str, List[str]], nodes: Iterable[GraphNode]) -> bool:
        """True when the mapping has an entry for every node."""
        return all(n.id in descendants for n in nodes)
