"""
Page inspection and submission on the portal's job-detail page.
``PageInspector`` is the seam the orchestrator talks to; ``PlaywrightInspector``
drives a real browser page through Playwright's sync API.
"""
from __future__ import annotations

import dataclasses
import os
import shutil
import tempfile
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

from apply_agent.log import get_logger
from apply_agent.models import JobPosting, SessionToken

log = get_logger(__name__)

LOGIN_URL = "https://www.naukri.com/nlogin/login"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

DESCRIPTION_SEL = ".styles_JDC__dang-inner-html__h0K4t"
CHIP_SEL = ".styles_chip__7YCfG"
STAT_SEL = ".styles_jhc__stat__PgY67"
MATCH_DETAIL_SEL = ".styles_MS__details__iS7mj"
ALREADY_APPLIED_SEL = "#already-applied, .already-applied"
APPLY_CONTAINER_SEL = '[class*="apply-button-container"]'
COMPANY_SITE_SEL = "#company-site-button"
APPLY_BUTTON_SEL = "#apply-button, .apply-button"
SUCCESS_TEXT = "successfully applied"
CONFIRMATION_TEXT = "You have successfully applied to"

# Keys Playwright's add_cookies accepts.
_COOKIE_KEYS = ("name", "value", "domain", "path", "expires", "httpOnly", "secure", "sameSite")


class Indicator(str, Enum):
    ALREADY_APPLIED = "already_applied"
    COMPANY_SITE_REDIRECT = "company_site_redirect"
    APPLY_BUTTON = "apply_button"
    CONFIRMATION = "confirmation"


class PageInspector(ABC):
    """One authenticated browsing context, used for one job at a time."""

    @abstractmethod
    def navigate(self, url: str) -> bool:
        """Open ``url``; False on timeout or navigation error."""

    @abstractmethod
    def has_indicator(self, indicator: Indicator) -> bool:
        ...

    @abstractmethod
    def extract_posting(self, job: JobPosting) -> JobPosting:
        """Return ``job`` enriched with what the open page shows."""

    @abstractmethod
    def click(self, control: Indicator) -> bool:
        ...

    @abstractmethod
    def success_markers(self) -> bool:
        """True when the page shows a success text or applied indicator."""

    @abstractmethod
    def restore_session(self, token: SessionToken) -> None:
        ...

    def close(self) -> None:
        pass


def _visible(locator) -> bool:
    """Safe visibility check that never throws."""
    try:
        return locator.count() > 0 and locator.first.is_visible(timeout=2000)
    except Exception:
        return False


def _parse_count(text: str) -> int | None:
    digits = text.replace(",", "").strip()
    try:
        return int(digits)
    except ValueError:
        return None


def _cookies_for_playwright(token: SessionToken) -> list[dict]:
    return [{k: c[k] for k in _COOKIE_KEYS if k in c} for c in token.cookies]


class PlaywrightInspector(PageInspector):
    def __init__(self, page, *, nav_timeout_ms: int = 60_000, content_timeout_ms: int = 10_000) -> None:
        self.page = page
        self.nav_timeout_ms = nav_timeout_ms
        self.content_timeout_ms = content_timeout_ms

    def navigate(self, url: str) -> bool:
        try:
            resp = self.page.goto(url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
        except Exception as e:
            log.error("Navigation failed: %s", str(e)[:150].split("\n")[0])
            return False
        if resp is None:
            return False
        try:
            self.page.wait_for_selector(DESCRIPTION_SEL, timeout=self.content_timeout_ms)
        except Exception as e:
            log.warning("Job content not found: %s", str(e)[:150].split("\n")[0])
        return True

    def has_indicator(self, indicator: Indicator) -> bool:
        page = self.page
        if indicator is Indicator.ALREADY_APPLIED:
            if page.locator(ALREADY_APPLIED_SEL).count() > 0:
                return True
            container = page.locator(APPLY_CONTAINER_SEL)
            if container.count() > 0:
                return container.first.inner_text().strip() in ("Applied", "Already Applied")
            return False
        if indicator is Indicator.COMPANY_SITE_REDIRECT:
            return page.locator(COMPANY_SITE_SEL).count() > 0
        if indicator is Indicator.APPLY_BUTTON:
            return _visible(page.locator(APPLY_BUTTON_SEL))
        if indicator is Indicator.CONFIRMATION:
            return CONFIRMATION_TEXT in page.locator("body").inner_text()
        raise ValueError(f"Unknown indicator: {indicator}")

    def _stat(self, label: str) -> int | None:
        stats = self.page.locator(STAT_SEL).filter(has_text=label)
        if stats.count() == 0:
            return None
        return _parse_count(stats.first.locator("span:last-child").inner_text())

    def _badge(self, icon: str, label: str) -> bool:
        details = self.page.locator(MATCH_DETAIL_SEL)
        for i in range(details.count()):
            div = details.nth(i)
            if div.locator(f"i.{icon}").count() == 0:
                continue
            span = div.locator("span")
            if span.count() > 0 and span.first.inner_text().strip() == label:
                return True
        return False

    def extract_posting(self, job: JobPosting) -> JobPosting:
        page = self.page
        desc = page.locator(DESCRIPTION_SEL)
        description = desc.first.inner_text().lower() if desc.count() > 0 else job.description
        chips = tuple(c.strip().lower() for c in page.locator(CHIP_SEL).all_inner_texts() if c.strip())
        openings = self._stat("Openings:")
        return dataclasses.replace(
            job,
            description=description,
            skill_chips=chips or job.skill_chips,
            applicants_count=self._stat("Applicants:"),
            openings_count=openings or 1,
            key_skills_match=self._badge("ni-icon-check_circle", "Keyskills"),
            work_experience_mismatch=self._badge("ni-icon-crossMatchscore", "Work Experience"),
        )

    def click(self, control: Indicator) -> bool:
        if control is not Indicator.APPLY_BUTTON:
            raise ValueError(f"Not a clickable control: {control}")
        btn = self.page.locator(APPLY_BUTTON_SEL).first
        try:
            if btn.is_disabled(timeout=5000):
                return False
            btn.click(timeout=5000)
            return True
        except Exception as e:
            log.warning("Apply click failed: %s", str(e)[:150].split("\n")[0])
            return False

    def success_markers(self) -> bool:
        if SUCCESS_TEXT in self.page.locator("body").inner_text():
            return True
        return self.page.locator(ALREADY_APPLIED_SEL).count() > 0

    def restore_session(self, token: SessionToken) -> None:
        self.page.context.add_cookies(_cookies_for_playwright(token))
        log.info("Restored %d session cookies", len(token.cookies))

    def close(self) -> None:
        try:
            self.page.close()
        except Exception as e:
            log.debug("Page already closed: %s", e)


def login_to_portal(page, username: str, password: str) -> SessionToken:
    """Interactive login; returns the cookies of the authenticated context."""
    if not username or not password:
        raise ValueError("NAUKRI_USERNAME / NAUKRI_PASSWORD not set")
    page.goto(LOGIN_URL, wait_until="domcontentloaded", timeout=60_000)
    page.locator('input[placeholder="Enter Email ID / Username"]').fill(username)
    page.locator('input[placeholder="Enter Password"]').fill(password)
    page.locator('button[type="submit"]').click()
    page.wait_for_selector('[class*="nI-gNb-drawer"]', timeout=30_000)
    time.sleep(2)
    cookies = page.context.cookies()
    log.info("Logged in as %s (%d cookies)", username, len(cookies))
    return SessionToken(cookies=tuple(cookies))


@contextmanager
def open_browser(*, headless: bool = True) -> Iterator[object]:
    """Yield a fresh page in a throwaway Chromium profile."""
    _pw = os.environ.get("PLAYWRIGHT_BROWSERS_PATH", "")
    if _pw and not Path(_pw).exists():
        os.environ.pop("PLAYWRIGHT_BROWSERS_PATH", None)
    from playwright.sync_api import sync_playwright

    profile_dir = tempfile.mkdtemp(prefix="apply-agent-profile-")
    try:
        with sync_playwright() as p:
            context = p.chromium.launch_persistent_context(
                profile_dir,
                headless=headless,
                viewport={"width": 1366, "height": 768},
                user_agent=USER_AGENT,
                args=["--disable-features=FederatedCredentialManagement"],
            )
            try:
                page = context.new_page()
                page.set_default_timeout(20_000)
                yield page
            finally:
                context.close()
    finally:
        shutil.rmtree(profile_dir, ignore_errors=True)
        log.debug("Removed temporary browser profile %s", profile_dir)
