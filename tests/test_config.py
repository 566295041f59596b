# tests/test_config.py
import pytest
from pydantic import ValidationError

from app.platform.config import Settings


@pytest.mark.parametrize(
    "field",
    ["CRAWL_PROGRESS_INTERVAL", "CRAWL_MAX_PAGES", "CRAWL_LINKS_PER_PAGE", "QUEUE_MAX_ATTEMPTS"],
)
def test_zero_is_rejected_for_counts(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_negative_depth_is_rejected():
    with pytest.raises(ValidationError):
        Settings(CRAWL_MAX_DEPTH=-1)


def test_defaults_are_valid():
    config = Settings()
    assert config.CRAWL_PROGRESS_INTERVAL >= 1
    assert config.CRAWL_MAX_DEPTH >= 0
