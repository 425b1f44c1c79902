import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from roadmap.core.errors import GraphValidationError
from roadmap.core.types import GraphDocument
from roadmap.services.graph_validator import GraphValidator

logger = logging.getLogger(__name__)


def parse_graph_document(data: Dict[str, Any], source: str = None) -> GraphDocument:
    """Validate a raw document dict and convert it to typed nodes and edges."""
    issues = GraphValidator().validate(data)
    if issues:
        logger.warning("Rejected roadmap document", extra={"source": source, "issues": len(issues)})
        raise GraphValidationError(issues, source=source)
    return GraphDocument.from_dict(data)


def load_graph_document(path: Union[str, Path]) -> GraphDocument:
    """Read a roadmap JSON file; raises GraphValidationError on any validation issue."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    document = parse_graph_document(data, source=str(path))
    logger.info("Loaded roadmap graph from %s", path,
                extra={"nodes": len(document.nodes), "edges": len(document.edges)})
    return document
