"""
Answer Page Fetcher

Downloads answer pages with caching disabled. Pages that only render their
answers with JavaScript can be loaded through a headless Chrome instead.
"""

import logging
import time
from typing import Optional

import requests

# Selenium is only needed for sources marked render=True
try:
    from selenium import webdriver
    from selenium.webdriver.chrome.options import Options
    from selenium.webdriver.chrome.service import Service
    from webdriver_manager.chrome import ChromeDriverManager
    SELENIUM_AVAILABLE = True
except ImportError:
    SELENIUM_AVAILABLE = False

logger = logging.getLogger(__name__)

USER_AGENT = (
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36'
)

HEADERS = {
    'Cache-Control': 'no-cache, no-store, max-age=0',
    'Pragma': 'no-cache',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-GB,en;q=0.9',
    'User-Agent': USER_AGENT,
}

DEFAULT_TIMEOUT = 20
RENDER_WAIT = 3


def build_url(url: str, now: Optional[float] = None) -> str:
    """
    Append a cache-busting timestamp parameter to a URL.

    Args:
        url: Source URL
        now: Override for the current time in seconds (for tests)

    Returns:
        URL with ts=<milliseconds> appended
    """
    stamp = int((time.time() if now is None else now) * 1000)
    separator = '&' if '?' in url else '?'
    return f"{url}{separator}ts={stamp}"


def fetch_text(url: str, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT) -> str:
    """
    Fetch a page as text with caching disabled.

    Args:
        url: Page URL (a cache-buster is added)
        session: Optional requests session to reuse connections
        timeout: Request timeout in seconds

    Returns:
        Response body

    Raises:
        requests.RequestException: On network errors or non-2xx status
    """
    getter = session or requests
    response = getter.get(build_url(url), headers=HEADERS, timeout=timeout)
    response.raise_for_status()
    return response.text


def fetch_rendered(url: str, wait: float = RENDER_WAIT) -> str:
    """
    Load a page in headless Chrome and return the rendered markup.

    Args:
        url: Page URL (a cache-buster is added)
        wait: Seconds to let client-side scripts populate the page

    Returns:
        Page source after rendering

    Raises:
        RuntimeError: If Selenium is not installed or the browser fails
    """
    if not SELENIUM_AVAILABLE:
        raise RuntimeError(
            "Selenium is not installed. Install it with: pip install 'connections-archive[browser]'"
        )

    chrome_options = Options()
    chrome_options.add_argument('--headless')
    chrome_options.add_argument('--no-sandbox')
    chrome_options.add_argument('--disable-dev-shm-usage')
    chrome_options.add_argument('--disable-gpu')
    chrome_options.add_argument('--window-size=1920,1080')
    chrome_options.add_argument(f'user-agent={USER_AGENT}')

    driver = None
    try:
        logger.debug(f"Starting headless Chrome for {url}")
        service = Service(ChromeDriverManager().install())
        driver = webdriver.Chrome(service=service, options=chrome_options)
        driver.get(build_url(url))
        time.sleep(wait)
        return driver.page_source
    except Exception as e:
        raise RuntimeError(f"Browser rendering failed: {str(e)}")
    finally:
        if driver:
            driver.quit()


def fetch_source(source, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Fetch a configured Source, rendering it in a browser when it asks for that."""
    if source.render:
        return fetch_rendered(source.url)
    return fetch_text(source.url, session=session, timeout=timeout)
