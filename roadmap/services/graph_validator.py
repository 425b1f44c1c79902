import logging
from datetime import datetime
from typing import Any, Dict, List, Set

from roadmap.core.types import (
    ValidationIssue,
    NODE_TYPES, NODE_TYPE_PILLAR, NODE_TYPE_SOLUTION, NODE_STATUSES,
    EDGE_TYPES, REDUCTION_EDGE_TYPES,
)

logger = logging.getLogger(__name__)


class GraphValidator:
    """Checks a raw roadmap document (camelCase dict) before it is turned into typed objects.

    Every violation is collected; nothing stops at the first problem.
    Semantic checks (duplicates, dangling references, orphans, parent cycles)
    only run over entries that passed the per-entry schema checks.
    """

    CODE_SCHEMA = "schema"
    CODE_DUPLICATE_ID = "duplicate_id"
    CODE_DANGLING_REFERENCE = "dangling_reference"
    CODE_ORPHAN_NODE = "orphan_node"
    CODE_PARENT_CYCLE = "parent_cycle"

    def __init__(self):
        self.issues: List[ValidationIssue] = []

    def _add(self, code: str, message: str, path: str) -> None:
        self.issues.append(ValidationIssue(code=code, message=message, path=path))

    def validate(self, document: Any) -> List[ValidationIssue]:
        self.issues = []
        if not isinstance(document, dict):
            self._add(self.CODE_SCHEMA, "Document must be a JSON object", "")
            return self.issues

        self._check_meta(document.get("meta"))

        nodes = document.get("nodes")
        edges = document.get("edges")
        if not isinstance(nodes, list):
            self._add(self.CODE_SCHEMA, "nodes must be an array", "nodes")
            nodes = []
        if not isinstance(edges, list):
            self._add(self.CODE_SCHEMA, "edges must be an array", "edges")
            edges = []

        valid_nodes = [n for i, n in enumerate(nodes) if self._check_node(i, n)]
        valid_edges = [e for i, e in enumerate(edges) if self._check_edge(i, e)]
        self._check_semantics(valid_nodes, valid_edges)

        if self.issues:
            logger.debug("Roadmap document has validation issues", extra={"issues": len(self.issues)})
        return self.issues

    # --- schema ---

    def _check_meta(self, meta: Any) -> None:
        if not isinstance(meta, dict):
            self._add(self.CODE_SCHEMA, "meta must be an object", "meta")
            return
        for key in ("version", "title", "generatedAt"):
            if not isinstance(meta.get(key), str):
                self._add(self.CODE_SCHEMA, f"meta.{key} must be a string", f"meta.{key}")
        generated_at = meta.get("generatedAt")
        if isinstance(generated_at, str) and not self._is_datetime(generated_at):
            self._add(self.CODE_SCHEMA, f"meta.generatedAt is not an ISO-8601 datetime: {generated_at}", "meta.generatedAt")

    @staticmethod
    def _is_datetime(value: str) -> bool:
        if "T" not in value:
            return False
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return False
        return True

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def _check_unit_interval(self, entry: Dict[str, Any], key: str, path: str, required: bool) -> bool:
        value = entry.get(key)
        if value is None:
            if required:
                self._add(self.CODE_SCHEMA, f"{key} is required", f"{path}.{key}")
                return False
            return True
        if not self._is_number(value) or not 0 <= value <= 1:
            self._add(self.CODE_SCHEMA, f"{key} must be a number between 0 and 1", f"{path}.{key}")
            return False
        return True

    def _check_node(self, index: int, node: Any) -> bool:
        path = f"nodes[{index}]"
        if not isinstance(node, dict):
            self._add(self.CODE_SCHEMA, "node must be an object", path)
            return False
        ok = True
        for key in ("id", "title"):
            if not isinstance(node.get(key), str):
                self._add(self.CODE_SCHEMA, f"{key} must be a string", f"{path}.{key}")
                ok = False
        if node.get("type") not in NODE_TYPES:
            self._add(self.CODE_SCHEMA, f"type must be one of {', '.join(NODE_TYPES)}", f"{path}.type")
            ok = False
        for key in ("description", "parentId"):
            if key in node and node[key] is not None and not isinstance(node[key], str):
                self._add(self.CODE_SCHEMA, f"{key} must be a string", f"{path}.{key}")
                ok = False
        if "status" in node and node["status"] not in NODE_STATUSES:
            self._add(self.CODE_SCHEMA, f"status must be one of {', '.join(NODE_STATUSES)}", f"{path}.status")
            ok = False
        if node.get("type") == NODE_TYPE_SOLUTION:
            effort = node.get("baseEffort")
            if not isinstance(effort, int) or isinstance(effort, bool) or effort < 0:
                self._add(self.CODE_SCHEMA, "baseEffort must be an integer >= 0", f"{path}.baseEffort")
                ok = False
            ok = self._check_unit_interval(node, "baseRisk", path, required=True) and ok
            ok = self._check_unit_interval(node, "baseUncertainty", path, required=True) and ok
        return ok

    def _check_edge(self, index: int, edge: Any) -> bool:
        path = f"edges[{index}]"
        if not isinstance(edge, dict):
            self._add(self.CODE_SCHEMA, "edge must be an object", path)
            return False
        ok = True
        for key in ("id", "source", "target"):
            if not isinstance(edge.get(key), str):
                self._add(self.CODE_SCHEMA, f"{key} must be a string", f"{path}.{key}")
                ok = False
        if edge.get("type") not in EDGE_TYPES:
            self._add(self.CODE_SCHEMA, f"type must be one of {', '.join(EDGE_TYPES)}", f"{path}.type")
            ok = False
        if edge.get("annotation") is not None and not isinstance(edge["annotation"], str):
            self._add(self.CODE_SCHEMA, "annotation must be a string", f"{path}.annotation")
            ok = False
        ok = self._check_unit_interval(edge, "strength", path, required=False) and ok
        if edge.get("type") in REDUCTION_EDGE_TYPES:
            ok = self._check_unit_interval(edge, "factor", path, required=True) and ok
        return ok

    # --- semantics ---

    def _check_semantics(self, nodes: List[Dict[str, Any]], edges: List[Dict[str, Any]]) -> None:
        node_ids = {n["id"] for n in nodes}
        self._check_duplicates([n["id"] for n in nodes], "node", "nodes")
        self._check_duplicates([e["id"] for e in edges], "edge", "edges")

        for node in nodes:
            parent_id = node.get("parentId")
            if parent_id and parent_id not in node_ids:
                self._add(self.CODE_DANGLING_REFERENCE,
                          f"Node {node['id']} references non-existent parent: {parent_id}", "nodes")

        for edge in edges:
            for end in ("source", "target"):
                if edge[end] not in node_ids:
                    self._add(self.CODE_DANGLING_REFERENCE,
                              f"Edge {edge['id']} references non-existent {end}: {edge[end]}", "edges")

        targets: Set[str] = {e["target"] for e in edges}
        for node in nodes:
            if node["type"] != NODE_TYPE_PILLAR and not node.get("parentId") and node["id"] not in targets:
                self._add(self.CODE_ORPHAN_NODE,
                          f"Node {node['id']} (type: {node['type']}) has no parent and no incoming edges", "nodes")

        parents = {n["id"]: n.get("parentId") for n in nodes}
        for node in nodes:
            if node.get("parentId") and self._has_parent_cycle(node["id"], parents):
                self._add(self.CODE_PARENT_CYCLE,
                          f"Circular parent relationship detected involving node: {node['id']}", "nodes")

    def _check_duplicates(self, ids: List[str], kind: str, path: str) -> None:
        counts: Dict[str, int] = {}
        for item_id in ids:
            counts[item_id] = counts.get(item_id, 0) + 1
        for item_id, count in counts.items():
            if count > 1:
                self._add(self.CODE_DUPLICATE_ID,
                          f"Duplicate {kind} ID: {item_id} (appears {count} times)", path)

    @staticmethod
    def _has_parent_cycle(node_id: str, parents: Dict[str, Any]) -> bool:
        seen: Set[str] = set()
        current = node_id
        while current:
            if current in seen:
                return True
            seen.add(current)
            current = parents.get(current)
        return False
