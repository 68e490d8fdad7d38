"""
Translate the missing strings of every locale concurrently.

Each target locale is one unit of work on a daemon worker thread: diff against the
baseline, prompt the model, map the answer, append it to the file. A unit
that fails is logged and reported; the other locales carry on. `run()` waits
for every unit (or the overall timeout) before returning a report.
"""

import concurrent.futures
import functools
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .client import CompletionResult, TranslationClient
from .diff import compute_delta
from .errors import TranslationAbandoned
from .mapper import to_mapping
from .prompts import build_translation_prompt
from .resources import LocaleResource

logger = logging.getLogger(__name__)

STATUS_TRANSLATED = 'translated'
STATUS_UP_TO_DATE = 'up-to-date'
STATUS_DRY_RUN = 'dry-run'
STATUS_FAILED = 'failed'
STATUS_TIMED_OUT = 'timed-out'

OK_STATUSES = (STATUS_TRANSLATED, STATUS_UP_TO_DATE, STATUS_DRY_RUN)


@dataclass
class LocaleResult:
    locale: str
    status: str
    requested: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status in OK_STATUSES


@dataclass
class RunReport:
    results: List[LocaleResult]
    duration: float

    @property
    def succeeded(self) -> List[LocaleResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[LocaleResult]:
        return [r for r in self.results if not r.ok]

    @property
    def is_partial(self) -> bool:
        """True when some locales failed and others did not."""
        return bool(self.failed) and bool(self.succeeded)


def select_entries(locale: str, delta: Mapping[str, str], translated: Mapping[str, str]) -> Dict[str, str]:
    """Keep the translations of requested keys, in delta order, dropping blanks."""
    extra = [key for key in translated if key not in delta]
    if extra:
        logger.warning('[%s] Ignoring %d unrequested keys: %s', locale, len(extra), ', '.join(extra))

    selected = {}
    for key in delta:
        value = translated.get(key, '').strip()
        if value:
            selected[key] = value
    return selected


class TranslationOrchestrator:
    """Runs one translation unit per target locale."""

    def __init__(
        self,
        client: TranslationClient,
        max_workers: Optional[int] = None,
        stream: bool = True,
        backup: bool = False,
        dry_run: bool = False,
        on_chunk: Optional[Callable[[str, str], None]] = None,
    ):
        self.client = client
        self.max_workers = max_workers
        self.stream = stream
        self.backup = backup
        self.dry_run = dry_run
        # Called with (locale, fragment) for every streamed fragment
        self.on_chunk = on_chunk

    def request_translation(self, locale: str, prompt: str) -> CompletionResult:
        if not self.stream:
            return self.client.complete(prompt)

        on_chunk = None
        if self.on_chunk is not None:
            on_chunk = functools.partial(self.on_chunk, locale)
        return self.client.stream_completion(prompt, on_chunk=on_chunk)

    def translate_locale(
        self,
        baseline_entries: Mapping[str, str],
        target: LocaleResource,
        abandoned: Optional[threading.Event] = None,
    ) -> LocaleResult:
        """
        Translate and append the strings one locale is missing.

        Raises whatever the steps raise; `run()` turns that into a failed result.
        """
        locale = target.locale
        delta = compute_delta(baseline_entries, target.entries)
        if not delta:
            logger.info('[%s] Up to date', locale)
            return LocaleResult(locale, STATUS_UP_TO_DATE)

        requested = list(delta)
        logger.info('[%s] %d missing strings: %s', locale, len(delta), ', '.join(requested))
        if self.dry_run:
            return LocaleResult(locale, STATUS_DRY_RUN, requested=requested, missing=requested)

        prompt = build_translation_prompt(locale, delta)
        completion = self.request_translation(locale, prompt)
        completion.raise_for_error()
        logger.debug('[%s] Model output (%d chunks): %s', locale, completion.chunks, completion.text)

        new_entries = select_entries(locale, delta, to_mapping(completion.text))
        if abandoned is not None and abandoned.is_set():
            raise TranslationAbandoned('Answer arrived after the run gave up waiting, not written')
        target.insert_entries(new_entries, backup=self.backup)

        missing = [key for key in requested if key not in new_entries]
        if missing:
            logger.warning('[%s] Still missing after translation: %s', locale, ', '.join(missing))
        logger.info('[%s] Added %d strings to %s', locale, len(new_entries), target.file_path)

        return LocaleResult(
            locale,
            STATUS_TRANSLATED,
            requested=requested,
            added=list(new_entries),
            missing=missing,
        )

    def _run_unit(
        self,
        baseline_entries: Mapping[str, str],
        target: LocaleResource,
        abandoned: Optional[threading.Event] = None,
    ) -> LocaleResult:
        started = time.monotonic()
        try:
            result = self.translate_locale(baseline_entries, target, abandoned)
        except Exception as e:
            logger.error('[%s] Translation failed: %s', target.locale, e)
            logger.debug('[%s] Failure details', target.locale, exc_info=True)
            result = LocaleResult(target.locale, STATUS_FAILED, error=f'{type(e).__name__}: {e}')
        result.duration = time.monotonic() - started
        return result

    def run(
        self,
        baseline: LocaleResource,
        targets: List[LocaleResource],
        timeout: Optional[float] = None,
    ) -> RunReport:
        """
        Translate every target concurrently and wait for all of them.

        With a timeout, units still running when it expires are abandoned
        and reported as timed out. Their threads are daemons, so they do not
        keep the process alive, and an abandoned unit no longer writes its
        file once its answer arrives.
        """
        started = time.monotonic()
        if not targets:
            return RunReport(results=[], duration=0.0)

        # Units only ever read the baseline
        baseline_entries = dict(baseline.entries)
        abandoned = threading.Event()
        pending = queue.Queue()
        futures = {}
        for target in targets:
            future = concurrent.futures.Future()
            futures[future] = target
            pending.put((future, target))

        def worker():
            while True:
                try:
                    future, target = pending.get_nowait()
                except queue.Empty:
                    return
                if future.set_running_or_notify_cancel():
                    future.set_result(self._run_unit(baseline_entries, target, abandoned))

        workers = min(self.max_workers or len(targets), len(targets))
        for i in range(workers):
            threading.Thread(target=worker, name=f'i18n_{i}', daemon=True).start()

        done, not_done = concurrent.futures.wait(futures, timeout=timeout)
        if not_done:
            abandoned.set()
            for future in not_done:
                future.cancel()

        results = []
        for future, target in futures.items():
            if future in done:
                results.append(future.result())
            else:
                logger.warning('[%s] Abandoned after the %ss timeout', target.locale, timeout)
                results.append(LocaleResult(
                    target.locale,
                    STATUS_TIMED_OUT,
                    error=f'Not finished within {timeout}s',
                    duration=time.monotonic() - started,
                ))

        duration = time.monotonic() - started
        logger.info('All translation tasks finished in %.1fs', duration)
        return RunReport(results=results, duration=duration)
