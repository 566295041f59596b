import pytest

from app.features.scan.schemas.page_signal import Headings, ImageSignal, PageSignal, Priority
from app.features.scan.services.analysis.recommendation_engine import RecommendationEngine

GOOD_TITLE = "Handmade Ceramic Mugs and Bowls | Clayworks"  # 43 chars
GOOD_DESCRIPTION = (
    "Shop handmade ceramic mugs, bowls and plates from Clayworks. Every piece is "
    "thrown, glazed and fired in our small studio by hand."
)


def make_signal(**overrides) -> PageSignal:
    values = dict(
        url="https://example.com/",
        title=GOOD_TITLE,
        meta_description=GOOD_DESCRIPTION,
        headings=Headings(h1=["Handmade ceramics"]),
        images=[],
        word_count=300,
        has_substantial_content=True,
    )
    values.update(overrides)
    return PageSignal(**values)


@pytest.fixture
def engine():
    return RecommendationEngine(brand_name="Clayworks")


class TestRecommendationEngine:
    def test_short_page_with_missing_alts_is_high_priority(self):
        engine = RecommendationEngine()
        signal = make_signal(
            title="Short page",
            meta_description="",
            headings=Headings(h1=["Welcome"]),
            images=[
                ImageSignal(src="https://example.com/img/Team_Photo-2.jpg"),
                ImageSignal(src="https://example.com/img/office.png"),
                ImageSignal(src="https://example.com/img/logo.svg"),
            ],
        )

        rec = engine.recommend(signal)

        assert rec.optimized_title == "Welcome | Your Brand"
        assert rec.optimized_description == "Welcome. Discover comprehensive information and insights."
        assert rec.priority == Priority.high
        assert len(rec.image_alts) == 3
        assert all(len(s.recommended_alt) <= 100 for s in rec.image_alts)
        assert rec.image_alts[0].recommended_alt == "team photo 2 on Short page"

    def test_recommend_is_repeatable(self, engine):
        signal = make_signal(title="", images=[ImageSignal(src="https://example.com/a.png")])

        assert engine.recommend(signal) == engine.recommend(signal)

    def test_well_formed_page_is_left_alone(self, engine):
        rec = engine.recommend(make_signal())

        assert rec.optimized_title == GOOD_TITLE
        assert rec.optimized_description == GOOD_DESCRIPTION
        assert rec.priority == Priority.low


class TestOptimizeTitle:
    def test_missing_title_without_h1(self, engine):
        assert engine.optimize_title("", None) == "Untitled Page | Clayworks"

    def test_long_h1_is_cut_without_brand(self, engine):
        h1 = "x" * 70

        assert engine.optimize_title("Short", h1) == "x" * 50 + "..."

    def test_long_title_is_truncated_to_sixty(self, engine):
        title = "A" * 75

        optimized = engine.optimize_title(title)

        assert len(optimized) == 60
        assert optimized.endswith("...")


class TestOptimizeDescription:
    def test_falls_back_to_title_then_placeholder(self, engine):
        assert engine.optimize_description("", "Pricing", None).startswith("Pricing. ")
        assert engine.optimize_description("", "", None) == (
            "Learn more about this page. Discover comprehensive information and insights."
        )

    def test_synthesized_description_is_capped(self, engine):
        description = engine.optimize_description("", "", "H" * 150)

        assert len(description) == 160
        assert description.endswith("...")

    def test_long_description_is_truncated(self, engine):
        description = engine.optimize_description("D" * 200, GOOD_TITLE)

        assert len(description) == 160
        assert description == "D" * 157 + "..."


class TestPriority:
    def test_thin_content_alone_is_medium(self, engine):
        signal = make_signal(has_substantial_content=False, word_count=10)

        assert engine.score(signal) == 3
        assert engine.calculate_priority(signal) == Priority.medium

    def test_missing_alt_contribution_is_capped(self, engine):
        images = [ImageSignal(src=f"https://example.com/{i}.png") for i in range(6)]
        signal = make_signal(images=images)

        assert engine.score(signal) == 2

    def test_missing_h1_alone_is_low(self, engine):
        signal = make_signal(headings=Headings())

        assert engine.score(signal) == 1
        assert engine.calculate_priority(signal) == Priority.low


class TestAltText:
    def test_filename_is_humanized(self, engine):
        alt = engine.suggest_alt_text("https://cdn.example.com/a/b/Blue%20Mug_large-01.webp?v=3", "Shop")

        assert alt == "blue mug large 01 on Shop"

    def test_missing_page_title(self, engine):
        assert engine.suggest_alt_text("https://example.com/", "") == "image on page"

    def test_alt_text_is_capped(self, engine):
        alt = engine.suggest_alt_text("https://example.com/photo.jpg", "T" * 200)

        assert len(alt) == 100
