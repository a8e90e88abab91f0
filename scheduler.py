"""Daily run orchestration and the UTC-midnight timer."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

import notifier
from arxiv_feed import fetch_arxiv_papers
from insight import generate_daily_insight
from news_feed import fetch_ai_news
from product_feed import fetch_ai_products

ARXIV_MAX_RESULTS = int(os.getenv("ARXIV_MAX_RESULTS", "5"))
NEWS_MAX_PER_SOURCE = int(os.getenv("NEWS_MAX_PER_SOURCE", "3"))
PRODUCTS_MAX_ITEMS = int(os.getenv("PRODUCTS_MAX_ITEMS", "5"))

# Insight input is read back from the store, not taken from this run's
# fetch results: a fetcher may save nothing new while older rows remain
# the best material to synthesize from.
RECENT_PAPERS_FOR_INSIGHT = 6
RECENT_NEWS_FOR_INSIGHT = 6
RECENT_PRODUCTS_FOR_INSIGHT = 5

JOB_ID_PREFIX = "daily-update"

NOTIFY_TITLE = "AI News Navigator 每日更新完成"
NOTIFY_FAILURE_TITLE = "AI News Navigator 每日更新失败"

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Result of one run_daily_update call."""

    success: bool
    papers: int = 0
    news: int = 0
    products: int = 0
    insight: bool = False
    skipped: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def next_run_at(now: datetime) -> datetime:
    """Return the next UTC midnight strictly after now."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    now = now.astimezone(UTC)
    candidate = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DailyScheduler:
    """Runs the fetch/enrich/persist pipeline once per UTC day.

    One instance owns the running state. A run requested while another is in
    flight is reported as skipped and does no work; it is not queued.
    """

    def __init__(
        self,
        store: Any,
        notify: Callable[[str, str], Any] = notifier.notify,
        clock: Callable[[], datetime] = _utc_now,
        arxiv_max_results: int = ARXIV_MAX_RESULTS,
        news_max_per_source: int = NEWS_MAX_PER_SOURCE,
        products_max_items: int = PRODUCTS_MAX_ITEMS,
    ) -> None:
        self.store = store
        self._notify = notify
        self._clock = clock
        self.arxiv_max_results = arxiv_max_results
        self.news_max_per_source = news_max_per_source
        self.products_max_items = products_max_items

        # Non-blocking acquisition makes check-and-set atomic between the
        # timer thread and a manual trigger.
        self._running = threading.Lock()
        self._scheduler: BackgroundScheduler | None = None
        self._timer_guard = threading.Lock()

    # -- running state ------------------------------------------------------

    def is_running(self) -> bool:
        return self._running.locked()

    def try_acquire(self) -> bool:
        return self._running.acquire(blocking=False)

    def release(self) -> None:
        self._running.release()

    @contextmanager
    def _hold(self) -> Iterator[None]:
        try:
            yield
        finally:
            self.release()

    # -- one run --------------------------------------------------------------

    def run_daily_update(self) -> RunOutcome:
        """Run papers, news, products and insight in order. Never raises."""
        if not self.try_acquire():
            LOGGER.info("Scheduler: run already in progress, skipping")
            return RunOutcome(success=False, skipped=True, error="Already running")

        with self._hold():
            return self._run()

    def _run(self) -> RunOutcome:
        LOGGER.info("Scheduler: starting daily update at %s", self._clock().isoformat())
        counts = {"papers": 0, "news": 0, "products": 0}
        insight_saved = False

        try:
            LOGGER.info("Scheduler: step 1/4 arXiv papers")
            counts["papers"] = self._produce("papers", fetch_arxiv_papers, self.store, self.arxiv_max_results)

            LOGGER.info("Scheduler: step 2/4 AI news")
            counts["news"] = self._produce("news", fetch_ai_news, self.store, self.news_max_per_source)

            LOGGER.info("Scheduler: step 3/4 AI products")
            counts["products"] = self._produce("products", fetch_ai_products, self.store, self.products_max_items)

            LOGGER.info("Scheduler: step 4/4 daily insight")
            insight_saved = self._synthesize_insight()
        except Exception as exc:  # outermost boundary: report partial counts
            message = str(exc) or exc.__class__.__name__
            LOGGER.exception("Scheduler: daily update failed: %s", message)
            outcome = RunOutcome(success=False, insight=insight_saved, error=message, **counts)
            self._send_summary(NOTIFY_FAILURE_TITLE, f"每日更新失败: {_summary(outcome)}, 错误: {message}")
            return outcome

        outcome = RunOutcome(success=True, insight=insight_saved, **counts)
        summary = f"每日更新完成: {_summary(outcome)}"
        LOGGER.info("Scheduler: %s", summary)
        self._send_summary(NOTIFY_TITLE, summary)
        return outcome

    def _produce(self, name: str, producer: Callable[[Any, int], int], store: Any, limit: int) -> int:
        try:
            return int(producer(store, limit))
        except Exception as exc:
            LOGGER.exception("Scheduler: producer %s failed: %s", name, exc)
            return 0

    def _synthesize_insight(self) -> bool:
        recent_papers = self.store.query_recent("papers", RECENT_PAPERS_FOR_INSIGHT)
        recent_news = self.store.query_recent("news", RECENT_NEWS_FOR_INSIGHT)
        recent_products = self.store.query_recent("products", RECENT_PRODUCTS_FOR_INSIGHT)

        paper_titles = [row.get("title_cn") or row["title"] for row in recent_papers]
        news_titles = [row.get("headline_cn") or row["headline"] for row in recent_news]
        product_names = [f"{row['name']}: {row.get('tagline') or ''}" for row in recent_products]

        try:
            insight = generate_daily_insight(paper_titles, news_titles, product_names)
        except Exception as exc:
            LOGGER.exception("Scheduler: producer insight failed: %s", exc)
            return False

        if insight is None:
            return False
        self.store.append_insight(insight)
        return True

    def _send_summary(self, title: str, content: str) -> None:
        try:
            self._notify(title, content)
        except Exception as exc:
            LOGGER.warning("Scheduler: failed to notify owner: %s", exc)

    # -- timer ----------------------------------------------------------------

    def start(self) -> None:
        """Start the background scheduler with a one-shot job at the next UTC midnight."""
        with self._timer_guard:
            if self._scheduler is not None:
                LOGGER.info("Scheduler: already started")
                return
            self._scheduler = BackgroundScheduler(timezone=UTC)
            self._scheduler.start()
        LOGGER.info("Scheduler: starting daily scheduler (00:00 UTC)")
        self._schedule_next()

    def stop(self) -> None:
        """Shut the background scheduler down. A run already in flight is left to finish."""
        with self._timer_guard:
            scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            LOGGER.info("Scheduler: stopped")

    @property
    def armed(self) -> bool:
        scheduler = self._scheduler
        return scheduler is not None and bool(scheduler.get_jobs())

    def _schedule_next(self) -> None:
        now = self._clock()
        run_at = next_run_at(now)

        with self._timer_guard:
            if self._scheduler is None:
                return
            # Ids are per run date; the job currently firing keeps its own id.
            self._scheduler.add_job(
                self._on_timer,
                trigger=DateTrigger(run_date=run_at),
                id=f"{JOB_ID_PREFIX}-{run_at:%Y%m%d}",
                replace_existing=True,
                misfire_grace_time=None,
            )
        delay = max(0.0, (run_at - now).total_seconds())
        LOGGER.info("Scheduler: next run at %s (in %s minutes)", run_at.isoformat(), round(delay / 60))

    def _on_timer(self) -> None:
        with self._timer_guard:
            if self._scheduler is None:
                return
        self.run_daily_update()
        # Next fire time comes from the wall clock, not from this fire time.
        self._schedule_next()


def _summary(outcome: RunOutcome) -> str:
    return (
        f"论文 {outcome.papers} 篇, 新闻 {outcome.news} 条, "
        f"产品 {outcome.products} 个, 洞察 {'已生成' if outcome.insight else '未生成'}"
    )
