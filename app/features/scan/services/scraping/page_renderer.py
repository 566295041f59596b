import time
from typing import Dict, List, Optional

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By

from app.features.scan.schemas.rendering import RawPageFacts, RenderOptions
from app.features.scan.services.extraction.page_signal_extractor import count_words
from app.platform.exceptions import NavigationError, RendererUnavailableError
from app.platform.logger import get_logger

logger = get_logger(__name__)

# DevTools URL patterns per resource type. Chrome has no request-interception
# hook over WebDriver, so types are approximated by extension and scheme.
BLOCKED_URL_PATTERNS: Dict[str, List[str]] = {
    "image": ["*.png", "*.jpg", "*.jpeg", "*.gif", "*.webp", "*.avif", "*.svg", "*.ico", "*.bmp"],
    "stylesheet": ["*.css"],
    "font": ["*.woff", "*.woff2", "*.ttf", "*.otf", "*.eot"],
    "media": ["*.mp4", "*.webm", "*.ogg", "*.mp3", "*.wav", "*.m4a", "*.mov"],
    "websocket": ["ws://*", "wss://*"],
}

# Content settings Chrome can switch off outright (2 = block)
BLOCKED_CONTENT_PREFS = {
    "image": "profile.managed_default_content_settings.images",
}

MAX_RAW_IMAGES = 200
MAX_RAW_LINKS = 500


class SeleniumRenderer:
    """
    One headless Chrome per crawl.

    open() must be called before render(); close() releases the browser and
    is safe to call more than once.
    """

    def __init__(
        self,
        options: Optional[RenderOptions] = None,
        chromedriver_path: Optional[str] = None,
        chrome_binary_path: Optional[str] = None,
    ):
        self.options = options or RenderOptions()
        self.chromedriver_path = chromedriver_path
        self.chrome_binary_path = chrome_binary_path
        self.driver: Optional[webdriver.Chrome] = None

    def build_chrome_options(self) -> Options:
        chrome_options = Options()
        chrome_options.add_argument('--headless=new')
        chrome_options.add_argument('--no-sandbox')
        chrome_options.add_argument('--disable-dev-shm-usage')
        chrome_options.add_argument('--disable-gpu')
        chrome_options.add_argument('--disable-background-timer-throttling')
        chrome_options.add_argument('--disable-renderer-backgrounding')
        width, height = self.options.viewport
        chrome_options.add_argument(f'--window-size={width},{height}')
        # Return from get() at DOMContentLoaded
        chrome_options.page_load_strategy = "eager"

        prefs = {
            pref: 2
            for resource_type, pref in BLOCKED_CONTENT_PREFS.items()
            if resource_type in self.options.blocked_resource_types
        }
        if prefs:
            chrome_options.add_experimental_option("prefs", prefs)

        if self.chrome_binary_path:
            chrome_options.binary_location = self.chrome_binary_path
        return chrome_options

    def blocked_url_patterns(self) -> List[str]:
        patterns: List[str] = []
        for resource_type in self.options.blocked_resource_types:
            patterns.extend(BLOCKED_URL_PATTERNS.get(resource_type, []))
        return patterns

    def open(self) -> None:
        if self.driver is not None:
            return

        chrome_options = self.build_chrome_options()
        try:
            if self.chromedriver_path:
                driver_service = Service(executable_path=self.chromedriver_path)
                driver = webdriver.Chrome(service=driver_service, options=chrome_options)
            else:
                driver = webdriver.Chrome(options=chrome_options)
        except (WebDriverException, OSError) as e:
            raise RendererUnavailableError(f"Could not start headless Chrome: {e}") from e

        try:
            patterns = self.blocked_url_patterns()
            if patterns:
                driver.execute_cdp_cmd("Network.enable", {})
                driver.execute_cdp_cmd("Network.setBlockedURLs", {"urls": patterns})
        except WebDriverException as e:
            logger.warning(f"Resource blocking unavailable, continuing without it: {e}")

        self.driver = driver
        logger.info("Headless Chrome started")

    def render(self, url: str, options: Optional[RenderOptions] = None) -> RawPageFacts:
        if self.driver is None:
            raise RendererUnavailableError("Renderer used before open()")

        options = options or self.options
        try:
            self.driver.set_page_load_timeout(options.navigation_timeout_ms / 1000)
            self.driver.get(url)
            if options.settle_seconds:
                # Let client-side rendering fill in headings and links
                time.sleep(options.settle_seconds)
            return self._collect_facts(url)
        except TimeoutException as e:
            raise NavigationError(url, f"Navigation timeout after {options.navigation_timeout_ms}ms") from e
        except WebDriverException as e:
            raise NavigationError(url, f"WebDriver error: {e.msg or e.__class__.__name__}") from e

    def close(self) -> None:
        if self.driver is None:
            return
        try:
            self.driver.quit()
        except Exception as e:
            logger.warning(f"Error while closing headless Chrome: {e}")
        finally:
            self.driver = None

    def _collect_facts(self, url: str) -> RawPageFacts:
        driver = self.driver

        meta = driver.find_elements(By.CSS_SELECTOR, 'meta[name="description"]')
        headings = {
            tag: [el.get_attribute("textContent") or "" for el in driver.find_elements(By.TAG_NAME, tag)]
            for tag in ("h1", "h2", "h3")
        }
        images = [
            {"src": img.get_attribute("src"), "alt": img.get_attribute("alt")}
            for img in driver.find_elements(By.TAG_NAME, "img")[:MAX_RAW_IMAGES]
        ]
        body = driver.find_elements(By.TAG_NAME, "body")
        body_text = body[0].get_attribute("textContent") if body else ""
        links = [a.get_attribute("href") for a in driver.find_elements(By.CSS_SELECTOR, "a[href]")[:MAX_RAW_LINKS]]

        return RawPageFacts(
            url=url,
            final_url=driver.current_url,
            title=driver.title,
            meta_description=meta[0].get_attribute("content") if meta else "",
            headings=headings,
            images=images,
            word_count=count_words(body_text),
            links=links,
        )
