"""Posting job facade: list, encode, spawn, route."""

from typing import Any, Dict, Mapping, Optional, Union

from usenet_post.application.encoder import JobEncoder
from usenet_post.application.manifest import ManifestBuilder
from usenet_post.application.router import OutputRouter
from usenet_post.domain.models import JobOptions, default_filename
from usenet_post.domain.protocols import ILister, IMetricsCollector
from usenet_post.infrastructure.config import ConfigLoader, Settings
from usenet_post.infrastructure.engine import EngineProcess, EngineSupervisor, LogProgressDecoder
from usenet_post.infrastructure.rclone import RcloneLister
from usenet_post.shared.logging import get_logger
from usenet_post.shared.metrics import MetricsCollector

logger = get_logger(__name__)


class Poster:
    """Coordinates one posting job from listing to output."""

    def __init__(
        self,
        settings: Settings,
        lister: Optional[ILister] = None,
        supervisor: Optional[EngineSupervisor] = None,
        router: Optional[OutputRouter] = None,
        metrics: Optional[IMetricsCollector] = None,
    ):
        self.settings = settings
        self._lister = lister or RcloneLister(settings.rclone_command)
        self._builder = ManifestBuilder(self._lister, settings.archive_command, settings.rclone_command)
        self._encoder = JobEncoder(settings.engine_command, settings.progress_interval)
        self._supervisor = supervisor or EngineSupervisor()
        self._router = router or OutputRouter()
        self._metrics = metrics or MetricsCollector()

    def options_for(self, overrides: Union[JobOptions, Mapping[str, Any], None]) -> JobOptions:
        if isinstance(overrides, JobOptions):
            # Unset fields leave the configured defaults alone.
            explicit: Dict[str, Any] = dict(overrides.values)
            if overrides.filename is not default_filename:
                explicit["filename"] = overrides.filename
            if overrides.progress is not None:
                explicit["progress"] = overrides.progress
            if overrides.archive:
                explicit["archive"] = True
            if overrides.out is not None:
                explicit["out"] = overrides.out
            return JobOptions.merge(self.settings.defaults, explicit)
        return JobOptions.merge(self.settings.defaults, overrides)

    def post(self, source: str, options: Union[JobOptions, Mapping[str, Any], None] = None):
        """
        Post source as one job.

        Returns:
            The running :class:`EngineProcess` in live and file modes, the
            NZB bytes in buffered mode

        Raises:
            ListingError, ArchiveProbeError: Before anything is spawned
            EngineSpawnError: If the engine cannot start
            EngineExitAbnormal: Buffered mode, on a non-zero exit
        """
        job = self.options_for(options)
        mode = job.output_mode
        logger.info(f"Posting {source} ({mode.value} output{', archived' if job.archive else ''})")

        self._metrics.start_timer("manifest")
        try:
            manifest = self._builder.build(source, job)
        finally:
            self._metrics.stop_timer("manifest")

        argv = self._encoder.encode(job)
        decoder = LogProgressDecoder(job.progress) if job.progress is not None else None

        # Live and file jobs are timed up to the hand-off, buffered jobs to completion.
        self._metrics.start_timer("engine")
        try:
            process = self._supervisor.spawn(argv, manifest.render(), mode, out_path=job.out, decoder=decoder)
            result = self._router.route(process)
        finally:
            elapsed = self._metrics.stop_timer("engine")

        if isinstance(result, bytes):
            self._metrics.record_metric("nzb_bytes", len(result))
            logger.info(f"Posted {source} in {elapsed:.1f}s ({len(result)} bytes of NZB)")
        logger.debug(f"Job metrics for {source}: {self._metrics.get_summary()}")
        return result


def post(
    source: str,
    options: Union[JobOptions, Mapping[str, Any], None] = None,
    settings: Optional[Settings] = None,
    lister: Optional[ILister] = None,
    supervisor: Optional[EngineSupervisor] = None,
) -> Union[EngineProcess, bytes]:
    """
    Upload a folder or file into a single NZB.

    ``options`` is either a :class:`JobOptions` or a plain mapping of engine
    options, which may also carry ``filename``, ``progress``, ``archive`` and
    ``out``. Settings are loaded from config and environment when not given.
    """
    if settings is None:
        settings = ConfigLoader().load()
    return Poster(settings, lister=lister, supervisor=supervisor).post(source, options)
