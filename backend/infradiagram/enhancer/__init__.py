from infradiagram.enhancer.client import ChatCompletionsClient, LLMClient
from infradiagram.enhancer.enhancer import (
    DiagramEnhancer,
    EnhancementResult,
    get_enhancer,
    merge_enhancement,
    project_graph,
)

__all__ = [
    "ChatCompletionsClient",
    "DiagramEnhancer",
    "EnhancementResult",
    "LLMClient",
    "get_enhancer",
    "merge_enhancement",
    "project_graph",
]
