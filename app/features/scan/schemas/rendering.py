from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

DEFAULT_BLOCKED_RESOURCE_TYPES = ("image", "stylesheet", "font", "media", "websocket")


class RenderOptions(BaseModel):
    """How a page is loaded by the rendering collaborator."""
    blocked_resource_types: Tuple[str, ...] = DEFAULT_BLOCKED_RESOURCE_TYPES
    navigation_timeout_ms: int = 30000
    viewport: Tuple[int, int] = (1200, 800)
    settle_seconds: float = 2.0


class RawPageFacts(BaseModel):
    """DOM-derived facts as returned by a renderer, before normalization."""
    url: str
    final_url: Optional[str] = None
    title: Optional[str] = None
    meta_description: Optional[str] = None
    headings: Dict[str, List[str]] = Field(default_factory=dict)
    images: List[Dict[str, Optional[str]]] = Field(default_factory=list)
    word_count: int = 0
    links: List[Optional[str]] = Field(default_factory=list)
