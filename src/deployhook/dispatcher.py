"""
Deploy Dispatcher
=================

Runs deploy work detached from the HTTP request that triggered it.

Each accepted webhook becomes background jobs:

- legacy mode: the script run and a fixed "success" callback are two
  independent jobs, submitted together.
- ``report_exit_status``: one job runs the script, then posts an outcome
  whose state follows the script's exit code.

Script jobs get a thread each, so a long deploy never delays another one.
Callbacks run on their own thread pool and never queue behind scripts.

With ``serialize_deploys`` the script jobs of one repository go through a
per-repository backlog drained by a single thread; other repositories are
unaffected. Requests are never deduplicated: every accepted webhook runs
the script once.

Exceptions raised inside a job are logged by the job wrapper and go no
further.
"""

import logging
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Deque, Dict, Optional, Set

from src.deployhook.config import RepositoryConfig
from src.deployhook.models import DeployOutcome, InboundWebhook
from src.deployhook.notifier import CallbackNotifier
from src.deployhook.runner import ScriptResult, ScriptRunner

logger = logging.getLogger(__name__)


class DeployDispatcher:
    """Fire-and-forget executor for deploy scripts and callbacks."""

    def __init__(
        self,
        runner: Optional[ScriptRunner] = None,
        notifier: Optional[CallbackNotifier] = None,
        callback_workers: int = 8,
        report_exit_status: bool = False,
        serialize_deploys: bool = False,
    ):
        self.runner = runner or ScriptRunner()
        self.notifier = notifier or CallbackNotifier()
        self.report_exit_status = report_exit_status
        self.serialize_deploys = serialize_deploys

        self._callbacks = ThreadPoolExecutor(max_workers=callback_workers, thread_name_prefix="callback")
        self._closed = False
        self._active = 0
        self._idle = threading.Condition()
        self._backlogs: Dict[str, Deque] = {}
        self._draining: Set[str] = set()
        self._backlog_guard = threading.Lock()

    # =========================================================================
    # Scheduling
    # =========================================================================

    def dispatch(self, repository: RepositoryConfig, webhook: InboundWebhook) -> None:
        """Schedule the deploy for ``repository``. Returns immediately."""
        if self._closed:
            raise RuntimeError("Deploy dispatcher is shut down")

        callback_url = webhook.callback_url

        if self.report_exit_status:
            self._submit_script(repository, f"deploy {repository.name}", self._deploy_and_report, repository, callback_url)
            return

        self._submit_script(repository, f"script {repository.name}", self.runner.run, repository.script)
        self._submit_callback(f"callback {repository.name}", callback_url, DeployOutcome.success())

    def _submit_callback(self, label: str, url: str, outcome: DeployOutcome) -> None:
        self._job_started()
        try:
            self._callbacks.submit(self._run_job, label, self.notifier.notify, url, outcome)
        except RuntimeError:
            self._job_done()
            logger.error(f"Dispatcher is shut down, dropping job: {label}")
            raise

    def _submit_script(self, repository: RepositoryConfig, label: str, fn, *args) -> None:
        self._job_started()
        if not self.serialize_deploys:
            self._start_thread(label, self._run_job, label, fn, *args)
            return

        with self._backlog_guard:
            self._backlogs.setdefault(repository.name, deque()).append((label, fn, args))
            if repository.name in self._draining:
                logger.info(f"Queued {label} behind a running deploy")
                return
            self._draining.add(repository.name)

        self._start_thread(f"backlog {repository.name}", self._drain_backlog, repository.name)

    def _start_thread(self, label: str, target, *args) -> None:
        thread = threading.Thread(target=target, args=args, name=f"deploy-{label}", daemon=True)
        thread.start()

    def _drain_backlog(self, name: str) -> None:
        """Run one repository's queued jobs in order until none are left."""
        while True:
            with self._backlog_guard:
                backlog = self._backlogs.get(name)
                if not backlog:
                    self._backlogs.pop(name, None)
                    self._draining.discard(name)
                    return
                label, fn, args = backlog.popleft()
            self._run_job(label, fn, *args)

    def _run_job(self, label: str, fn, *args):
        try:
            return fn(*args)
        except Exception:
            logger.exception(f"Background job failed: {label}")
            return None
        finally:
            self._job_done()

    def _job_started(self) -> None:
        with self._idle:
            self._active += 1

    def _job_done(self) -> None:
        with self._idle:
            self._active -= 1
            self._idle.notify_all()

    # =========================================================================
    # Jobs
    # =========================================================================

    def _deploy_and_report(self, repository: RepositoryConfig, callback_url: str) -> bool:
        result: ScriptResult = self.runner.run(repository.script)
        if result.succeeded:
            outcome = DeployOutcome.success()
        else:
            outcome = DeployOutcome.failure(result.describe())
        return self.notifier.notify(callback_url, outcome)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def pending(self) -> int:
        """Number of jobs submitted but not yet finished."""
        with self._idle:
            return self._active

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for outstanding jobs. Returns True if none remain."""
        with self._idle:
            return self._idle.wait_for(lambda: self._active == 0, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Refuse new deploys; with ``wait``, let running ones finish."""
        logger.info(f"Stopping deploy dispatcher ({self.pending()} jobs pending)")
        self._closed = True
        self._callbacks.shutdown(wait=wait)
        if wait:
            self.drain()
