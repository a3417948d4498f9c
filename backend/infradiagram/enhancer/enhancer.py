"""
Best-effort label polishing through a chat-completions model.

The model only ever sees a compact projection of the diagram and only
label, icon and verb are read back. Topology in the reply is ignored.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from infradiagram import config
from infradiagram.enhancer.client import ChatCompletionsClient, LLMClient
from infradiagram.ir.diagram import Graph
from infradiagram.utils.json_extract import extract_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a diagram-polishing assistant. Given a list of infrastructure resources and their connections, you output JSON that:
- renames nodes to short friendly labels (title-case, spaces).
- assigns each node an icon category (e.g. gcp/vpc, aws/s3_bucket).
- groups related nodes into logical containers with a descriptive title.
- assigns semantic verbs to edges (e.g. "configures", "depends on", "stores in").

IMPORTANT: Only return the ids you were given. Do NOT change node or edge ids.

Return ONLY valid JSON matching this schema:
{
  "nodes": [{"id":string,"label":string,"icon":string}],
  "groups": [{"title":string,"members":string[]}],
  "edges": [{"id":string,"verb":string}],
  "annotations": [{"type":"actor"|"note","label":string}]
}"""


@dataclass
class EnhancementResult:
    graph: Graph
    polished: bool = False
    groups: List[Dict[str, Any]] = field(default_factory=list)
    annotations: List[Dict[str, Any]] = field(default_factory=list)


def project_graph(graph: Graph) -> Dict[str, Any]:
    return {
        "nodes": [
            {"id": node.id, "type": node.resource_type or node.kind.key}
            for node in graph.nodes.values()
        ],
        "edges": [
            {"id": edge.id, "sourceId": edge.source_id, "targetId": edge.target_id}
            for edge in graph.edges.values()
        ],
    }


def _entries(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = payload.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def merge_enhancement(graph: Graph, payload: Dict[str, Any]) -> Graph:
    """Copy of `graph` with label/icon/verb taken from `payload` for known ids."""
    merged = graph.copy()

    for item in _entries(payload, "nodes"):
        node = merged.nodes.get(str(item.get("id")))
        if node is None:
            continue
        if isinstance(item.get("label"), str) and item["label"].strip():
            node.label = item["label"].strip()
        if isinstance(item.get("icon"), str) and item["icon"].strip():
            node.icon = item["icon"].strip()

    for item in _entries(payload, "edges"):
        edge = merged.edges.get(str(item.get("id")))
        if edge is None:
            continue
        if isinstance(item.get("verb"), str) and item["verb"].strip():
            edge.verb = item["verb"].strip()

    return merged


class DiagramEnhancer:
    def __init__(self, client: LLMClient):
        self.client = client

    def polish(self, graph: Graph) -> EnhancementResult:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(project_graph(graph))},
        ]

        try:
            raw = self.client.generate(messages)
            payload = extract_json(raw)
        except Exception as e:
            logger.warning("[enhancer] request failed, diagram left unchanged: %s", e)
            return EnhancementResult(graph=graph)

        if not payload:
            logger.warning("[enhancer] reply was not a JSON object, diagram left unchanged")
            return EnhancementResult(graph=graph)

        logger.info(
            "[enhancer] merging %d node and %d edge suggestions",
            len(_entries(payload, "nodes")),
            len(_entries(payload, "edges")),
        )
        return EnhancementResult(
            graph=merge_enhancement(graph, payload),
            polished=True,
            groups=_entries(payload, "groups"),
            annotations=_entries(payload, "annotations"),
        )


def get_enhancer() -> Optional[DiagramEnhancer]:
    if not config.ENHANCER_BASE_URL:
        return None
    return DiagramEnhancer(
        ChatCompletionsClient(
            base_url=config.ENHANCER_BASE_URL,
            model=config.ENHANCER_MODEL,
            api_key=config.ENHANCER_API_KEY or None,
            timeout=config.ENHANCER_TIMEOUT,
        )
    )
