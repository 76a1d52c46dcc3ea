import logging
import tempfile
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from . import render
from .archive import ArchiveResult, assemble_archive, build_manifest
from .artifacts import Failed, Outcome, VariantReport
from .config import KitSettings
from .errors import InvalidReferenceError, LogoKitError
from .references import ImageReference, InlineDataRef, ObjectStoreRef
from .source import RasterBuffer, SourceAcquirer
from .storage import ObjectStore, build_object_store
from .tracer import SVG_FILENAME, trace_master


logger = logging.getLogger(__name__)


class LogoKitPipeline:
    """
    Builds a downloadable logo kit from one generated image:
    - acquire and decode the source image
    - produce the high-resolution master (fatal on failure)
    - render the raster variants and trace the SVG concurrently
    - wait for every producer, then zip everything with a README manifest

    Each `build` call is independent; the only shared state is the injected
    object-store client. Scratch files live in a per-call temporary directory
    that is removed on every exit path.
    """

    def __init__(
        self,
        store: Optional[ObjectStore] = None,
        settings: Optional[KitSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings or KitSettings()
        self.acquirer = SourceAcquirer(store if store is not None else build_object_store(self.settings))
        self.clock = clock

    def build(
        self,
        reference: Optional[ImageReference],
        label: Optional[str] = "",
        timeout: Optional[float] = None,
    ) -> ArchiveResult:
        if not isinstance(reference, (ObjectStoreRef, InlineDataRef)):
            raise InvalidReferenceError("an image reference is required to build a logo kit")

        started = time.monotonic()
        deadline = started + timeout if timeout is not None else None

        try:
            with tempfile.TemporaryDirectory(prefix="logo-kit-", ignore_cleanup_errors=True) as scratch:
                result = self._run(reference, label or "", Path(scratch), deadline)
        except LogoKitError as exc:
            logger.error("Logo kit build failed: %s", exc)
            raise

        logger.info("Logo kit ready in %.2fs", time.monotonic() - started)
        return result

    def _run(
        self,
        reference: ImageReference,
        label: str,
        scratch: Path,
        deadline: Optional[float],
    ) -> ArchiveResult:
        source = self.acquirer.acquire(reference)
        master_artifact, master = render.produce_master(source)
        logger.info("Master raster is %dx%d", master.width, master.height)

        report = self._produce(master, scratch, deadline)
        artifacts = [master_artifact] + report.produced

        now = self.clock() if self.clock else None
        manifest = build_manifest(label, artifacts, report.failed, now=now)
        return assemble_archive(manifest, artifacts)

    def _produce(self, master: RasterBuffer, scratch: Path, deadline: Optional[float]) -> VariantReport:
        executor = ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="logo-kit")
        try:
            trace_future: Optional[Future] = None
            if self._remaining(deadline) >= self.settings.trace_min_seconds:
                trace_future = executor.submit(trace_master, master, scratch)
            else:
                logger.warning("Skipping vector trace: not enough time left before the deadline")

            # Barrier: the archive is only written once every producer settled.
            report = render.generate_variants(master, executor=executor)

            if trace_future is None:
                report.add(Failed(name="vector", filename=SVG_FILENAME, reason="skipped: deadline"))
            else:
                report.add(self._join_trace(trace_future, deadline))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if report.failed:
            logger.warning("Kit produced without: %s", ", ".join(report.failed_names))
        return report

    def _join_trace(self, future: Future, deadline: Optional[float]) -> Outcome:
        timeout = None if deadline is None else max(0.0, self._remaining(deadline))
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning("Vector trace did not finish before the deadline, leaving it out")
            return Failed(name="vector", filename=SVG_FILENAME, reason="timed out")
        except Exception as exc:
            return Failed(name="vector", filename=SVG_FILENAME, reason=f"{type(exc).__name__}: {exc}")

    @staticmethod
    def _remaining(deadline: Optional[float]) -> float:
        if deadline is None:
            return float("inf")
        return deadline - time.monotonic()
