"""
Page Signal Schemas

Per-page SEO facts, the recommendations derived from them, and the
ScanResult document persisted on the scan session.
"""
import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Priority(str, enum.Enum):
    high = "high"
    medium = "medium"
    low = "low"


# ============================================================================
# Extracted signals
# ============================================================================

class Headings(BaseModel):
    model_config = ConfigDict(frozen=True)

    h1: List[str] = Field(default_factory=list)
    h2: List[str] = Field(default_factory=list)
    h3: List[str] = Field(default_factory=list)


class ImageSignal(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    current_alt: str = ""


class PageSignal(BaseModel):
    """Normalized on-page facts for one visited URL."""
    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    meta_description: str = ""
    headings: Headings = Field(default_factory=Headings)
    images: List[ImageSignal] = Field(default_factory=list)
    word_count: int = Field(default=0, ge=0)
    has_substantial_content: bool = False
    internal_links: List[str] = Field(default_factory=list, max_length=10)


# ============================================================================
# Recommendations
# ============================================================================

class ImageAltSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    recommended_alt: str


class Recommendation(BaseModel):
    """Suggested fixes for one page, in the same image order as the signal."""
    model_config = ConfigDict(frozen=True)

    optimized_title: str
    optimized_description: str
    priority: Priority
    image_alts: List[ImageAltSuggestion] = Field(default_factory=list)


# ============================================================================
# Persisted aggregate
# ============================================================================

class PageRecommendations(BaseModel):
    title: str
    meta_description: str
    priority: Priority


class ImageReport(BaseModel):
    src: str
    current_alt: str = ""
    recommended_alt: str = ""


class PageReport(BaseModel):
    """One entry of ScanResult.pages: the signal merged with its recommendation."""
    url: str
    title: str = ""
    meta_description: str = ""
    headings: Headings = Field(default_factory=Headings)
    images: List[ImageReport] = Field(default_factory=list)
    word_count: int = 0
    has_substantial_content: bool = False
    internal_links: List[str] = Field(default_factory=list)
    recommendations: PageRecommendations

    @classmethod
    def build(cls, signal: PageSignal, recommendation: Recommendation) -> "PageReport":
        images = [
            ImageReport(
                src=image.src,
                current_alt=image.current_alt,
                recommended_alt=suggestion.recommended_alt,
            )
            for image, suggestion in zip(signal.images, recommendation.image_alts)
        ]
        return cls(
            url=signal.url,
            title=signal.title,
            meta_description=signal.meta_description,
            headings=signal.headings,
            images=images,
            word_count=signal.word_count,
            has_substantial_content=signal.has_substantial_content,
            internal_links=list(signal.internal_links),
            recommendations=PageRecommendations(
                title=recommendation.optimized_title,
                meta_description=recommendation.optimized_description,
                priority=recommendation.priority,
            ),
        )


class ScanError(BaseModel):
    url: str
    reason: str


class ScanResult(BaseModel):
    pages: List[PageReport] = Field(default_factory=list)
    total_pages: int = 0
    pages_processed: int = 0
    pages_skipped: int = 0
    errors: List[ScanError] = Field(default_factory=list)
    current_page: Optional[str] = None
    last_update: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    # Set only on the minimal aggregate written when a job gives up
    error: Optional[str] = None

    @classmethod
    def failed(cls, reason: str) -> "ScanResult":
        return cls(error=reason)

    def to_document(self) -> dict:
        return self.model_dump(mode="json")
