import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Iterable, Union

from roadmap.core.types import GraphNode

logger = logging.getLogger(__name__)


class DescendantCacheStore:
    """Persists the descendant index as JSON next to the input graph.

    File shape: {"fingerprint": <sha256 hex>, "descendants": {<id>: [<id>, ...]}}.
    The fingerprint covers node ids and parent links in document order, so
    any change to the hierarchy makes the stored index stale.
    """

    DEFAULT_FILENAME = "priority-graph-optimized.json"

    def __init__(self, cache_path: Union[str, Path]):
        self.cache_path = Path(cache_path)

    @staticmethod
    def fingerprint(nodes: Iterable[GraphNode]) -> str:
        payload = json.dumps([[n.id, n.parent_id] for n in nodes], separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def load(self, fingerprint: str) -> Optional[Dict[str, List[str]]]:
        """Stored descendants when the file exists, parses and matches `fingerprint`; else None."""
        if not self.cache_path.exists():
            logger.debug("No descendant cache at %s", self.cache_path)
            return None
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.debug("Could not read descendant cache %s: %s", self.cache_path, e)
            return None

        if not isinstance(data, dict) or not isinstance(data.get("descendants"), dict):
            logger.debug("Descendant cache %s has unexpected shape", self.cache_path)
            return None
        if data.get("fingerprint") != fingerprint:
            logger.debug("Descendant cache is stale", extra={"path": str(self.cache_path)})
            return None

        descendants = data["descendants"]
        if not all(isinstance(ids, list) and all(isinstance(i, str) for i in ids) for ids in descendants.values()):
            logger.debug("Descendant cache %s has malformed entries", self.cache_path)
            return None
        logger.debug("Loaded descendant cache", extra={"path": str(self.cache_path), "nodes": len(descendants)})
        return {node_id: list(ids) for node_id, ids in descendants.items()}

    def save(self, fingerprint: str, descendants: Dict[str, List[str]]) -> bool:
        """Best-effort write; failures are logged and reported as False."""
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, "w", encoding="utf-8") as f:
                json.dump({"fingerprint": fingerprint, "descendants": descendants}, f, indent=2)
        except (OSError, TypeError) as e:
            logger.warning("Failed to save descendant cache to %s: %s", self.cache_path, e)
            return False
        logger.debug("Saved descendant cache", extra={"path": str(self.cache_path), "nodes": len(descendants)})
        return True

    def clear(self) -> None:
        if self.cache_path.exists():
            self.cache_path.unlink()
            logger.debug("Cleared descendant cache %s", self.cache_path)
