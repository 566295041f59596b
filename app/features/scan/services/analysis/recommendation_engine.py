import posixpath
import re
from typing import Optional
from urllib.parse import unquote, urlparse

from app.features.scan.schemas.page_signal import (
    ImageAltSuggestion,
    PageSignal,
    Priority,
    Recommendation,
)

ELLIPSIS = "..."


class RecommendationEngine:
    """
    Deterministic title, description, priority and alt-text suggestions
    for a single PageSignal.

    Scoring (one rule set, see DESIGN.md):
        title outside [30, 60]           +2
        description outside [120, 160]   +2
        no substantial content           +3
        no H1                            +1
        images without alt               +1 each, at most +2
    score >= 5 is high, >= 2 is medium, anything lower is low.
    """

    TITLE_MIN_LENGTH = 30
    TITLE_MAX_LENGTH = 60
    TITLE_FROM_H1_MAX_LENGTH = 50
    DESCRIPTION_MIN_LENGTH = 120
    DESCRIPTION_MAX_LENGTH = 160
    ALT_TEXT_MAX_LENGTH = 100

    DESCRIPTION_FILLER = "Discover comprehensive information and insights."
    DESCRIPTION_FALLBACK = "Learn more about this page"
    UNTITLED_PAGE = "Untitled Page"
    ALT_TEXT_FALLBACK = "Image"

    HIGH_PRIORITY_SCORE = 5
    MEDIUM_PRIORITY_SCORE = 2
    MISSING_ALT_SCORE_CAP = 2

    def __init__(self, brand_name: str = "Your Brand"):
        self.brand_name = brand_name

    def recommend(self, signal: PageSignal) -> Recommendation:
        first_h1 = signal.headings.h1[0] if signal.headings.h1 else None
        return Recommendation(
            optimized_title=self.optimize_title(signal.title, first_h1),
            optimized_description=self.optimize_description(
                signal.meta_description, signal.title, first_h1
            ),
            priority=self.calculate_priority(signal),
            image_alts=[
                ImageAltSuggestion(
                    src=image.src,
                    recommended_alt=self.suggest_alt_text(image.src, signal.title),
                )
                for image in signal.images
            ],
        )

    # ------------------------------------------------------------------
    # Titles and descriptions
    # ------------------------------------------------------------------

    def optimize_title(self, current: str, h1: Optional[str] = None) -> str:
        if not current or len(current) < self.TITLE_MIN_LENGTH:
            if h1:
                if len(h1) > self.TITLE_FROM_H1_MAX_LENGTH:
                    return h1[: self.TITLE_FROM_H1_MAX_LENGTH] + ELLIPSIS
                return f"{h1} | {self.brand_name}"
            return f"{self.UNTITLED_PAGE} | {self.brand_name}"

        if len(current) > self.TITLE_MAX_LENGTH:
            return _truncate(current, self.TITLE_MAX_LENGTH)

        return current

    def optimize_description(self, current: str, title: str, h1: Optional[str] = None) -> str:
        if not current or len(current) < self.DESCRIPTION_MIN_LENGTH:
            base_text = h1 or title or self.DESCRIPTION_FALLBACK
            description = f"{base_text}. {self.DESCRIPTION_FILLER}"
            if len(description) > self.DESCRIPTION_MAX_LENGTH:
                return _truncate(description, self.DESCRIPTION_MAX_LENGTH)
            return description

        if len(current) > self.DESCRIPTION_MAX_LENGTH:
            return _truncate(current, self.DESCRIPTION_MAX_LENGTH)

        return current

    # ------------------------------------------------------------------
    # Priority
    # ------------------------------------------------------------------

    def calculate_priority(self, signal: PageSignal) -> Priority:
        score = self.score(signal)
        if score >= self.HIGH_PRIORITY_SCORE:
            return Priority.high
        if score >= self.MEDIUM_PRIORITY_SCORE:
            return Priority.medium
        return Priority.low

    def score(self, signal: PageSignal) -> int:
        score = 0

        if not self._within(signal.title, self.TITLE_MIN_LENGTH, self.TITLE_MAX_LENGTH):
            score += 2

        if not self._within(
            signal.meta_description, self.DESCRIPTION_MIN_LENGTH, self.DESCRIPTION_MAX_LENGTH
        ):
            score += 2

        if not signal.has_substantial_content:
            score += 3

        if not signal.headings.h1:
            score += 1

        missing_alt = sum(1 for image in signal.images if not image.current_alt)
        score += min(missing_alt, self.MISSING_ALT_SCORE_CAP)

        return score

    # ------------------------------------------------------------------
    # Alt text
    # ------------------------------------------------------------------

    def suggest_alt_text(self, src: str, page_title: str) -> str:
        """'/img/Team_Photo-2.jpg' on 'About' becomes 'team photo 2 on About'."""
        try:
            filename = posixpath.basename(urlparse(src).path)
            stem = unquote(filename).split(".")[0] or "image"
            cleaned = re.sub(r"[-_]", " ", stem).lower()
            return f"{cleaned} on {page_title or 'page'}"[: self.ALT_TEXT_MAX_LENGTH]
        except (ValueError, TypeError, AttributeError):
            return self.ALT_TEXT_FALLBACK

    @staticmethod
    def _within(value: str, minimum: int, maximum: int) -> bool:
        return bool(value) and minimum <= len(value) <= maximum


def _truncate(text: str, limit: int) -> str:
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS
