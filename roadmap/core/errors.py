from typing import List, Optional

from roadmap.core.types import ValidationIssue


class NodeNotFoundError(KeyError):
    """Raised when a state transition names a node id the graph does not contain."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node not found: {self.node_id}"


class GraphValidationError(ValueError):
    """Raised by the loader when a document has one or more validation issues."""

    def __init__(self, issues: List[ValidationIssue], source: Optional[str] = None):
        self.issues = list(issues)
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"{len(self.issues)} validation issue(s){where}: " + "; ".join(i.message for i in self.issues[:5]))
