"""Periodic collection of RPKI validation status for configured targets."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from rpki_exporter.config import ExporterConfig
from rpki_exporter.decoder import DecodeError, decode_validation
from rpki_exporter.metrics import RpkiMetrics, UnknownStateError
from rpki_exporter.models.validation import ValidationRecord
from rpki_exporter.sources.rpki_validator import RpkiValidatorClient, RpkiValidatorError

logger = logging.getLogger(__name__)


@dataclass
class LookupResult:
    """Outcome of one (prefix, AS) lookup within a cycle."""

    prefix: str
    asn: int
    record: ValidationRecord | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        """Return True if the record reached the metrics."""
        return self.error is None


# Type for lookup completion callback
ResultCallback = Callable[[LookupResult], None]


class CollectionScheduler:
    """Dispatches one concurrent lookup per configured prefix every interval.

    The interval loop never waits on lookups: each (target, prefix) pair runs
    as its own task, and cycles may overlap when lookups are slower than the
    interval. A failed lookup only increments the failure counter.

    Example:
        scheduler = CollectionScheduler(config, client, metrics)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        config: ExporterConfig,
        client: RpkiValidatorClient,
        metrics: RpkiMetrics,
        on_result: ResultCallback | None = None,
    ):
        """Initialize the scheduler.

        Args:
            config: Validated target configuration.
            client: Connected validator client.
            metrics: Metrics to update.
            on_result: Called with each LookupResult once its lookup finishes.
        """
        self.config = config
        self.client = client
        self.metrics = metrics
        self.on_result = on_result
        self.cycles = 0

        self._loop_task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        """Check if the interval loop is active."""
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def pending(self) -> int:
        """Number of lookups currently in flight."""
        return len(self._pending)

    def dispatch(self) -> list[asyncio.Task]:
        """Start one lookup task per (target, prefix) pair and return immediately.

        Returns:
            The tasks started for this cycle. Each resolves to a LookupResult.
        """
        self.cycles += 1
        tasks = []
        for target in self.config.targets:
            for prefix in target.prefixes:
                task = asyncio.create_task(self._collect(prefix, target.asn))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                tasks.append(task)

        logger.debug("Cycle %d: dispatched %d lookups", self.cycles, len(tasks))
        return tasks

    async def _collect(self, prefix: str, asn: int) -> LookupResult:
        """Run lookup, decode and record for a single prefix."""
        result = LookupResult(prefix=prefix, asn=asn)
        try:
            body = await self.client.lookup(prefix, asn)
            result.record = decode_validation(body)
            self.metrics.record(result.record)
        except RpkiValidatorError as e:
            result.error = e
            logger.warning("Lookup failed for %s AS%d: %s", prefix, asn, e)
        except DecodeError as e:
            result.error = e
            logger.warning("Could not decode response for %s AS%d: %s", prefix, asn, e)
        except UnknownStateError as e:
            result.error = e
            logger.warning("Rejected response for %s AS%d: %s", prefix, asn, e)
        except Exception as e:
            result.error = e
            logger.exception("Unexpected error collecting %s AS%d", prefix, asn)

        if result.error is not None:
            self.metrics.record_failure()

        if self.on_result is not None:
            try:
                self.on_result(result)
            except Exception:
                logger.exception("Result callback failed for %s AS%d", prefix, asn)
        return result

    async def _run(self) -> None:
        """Background task driving the refresh interval."""
        interval = self.config.refresh_interval
        while True:
            self.dispatch()
            await asyncio.sleep(interval)

    def start(self) -> None:
        """Start the interval loop as a background task."""
        if self.is_running:
            return

        logger.info(
            "Starting to collect metrics for %d prefixes every %ds",
            self.config.prefix_count,
            self.config.refresh_interval,
        )
        self._loop_task = asyncio.create_task(self._run())

    async def wait_pending(self) -> list[LookupResult]:
        """Wait for every lookup currently in flight.

        Returns:
            Results of the lookups that were pending when called.
        """
        if not self._pending:
            return []
        return list(await asyncio.gather(*list(self._pending)))

    async def stop(self) -> None:
        """Stop the interval loop and abandon in-flight lookups."""
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()
