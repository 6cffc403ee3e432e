import dataclasses
import enum
import logging
import os
from typing import Callable, Dict, NamedTuple, Optional

from rich.console import Console

from .constants import (
    ARCHIVE_FILE_NAME,
    BUILD_CREATED,
    BUILD_FAILED,
    DASHBOARD_URL,
    DEFAULT_PARALLEL_MESSAGE,
    EXIT_ARCHIVE_FAILED,
    EXIT_BUILD_FAILED,
    EXIT_CAPABILITIES_FAILED,
    EXIT_CONFIG_FAILED,
    EXIT_SUCCESS,
    EXIT_SYNC_CLI_MESSAGE,
    EXIT_UPLOAD_FAILED,
    FAILED_TO_ZIP,
    MESSAGE_TYPE_ERROR,
    MESSAGE_TYPE_SUCCESS,
    NO_DEPENDENCIES,
    NO_DEPENDENCIES_READ_MORE,
    NO_PARALLELS,
    NOT_VALID,
    SYNC_EXIT_ERROR,
    VISIT_DASHBOARD,
    ZIP_CREATION_FAILED,
    ZIP_DELETE_FAILED,
    ZIP_UPLOAD_FAILED,
    ZIP_UPLOAD_FAILED_MESSAGE,
)
from .errors_catalog import classify_error
from .models import (
    ArchiveArtifact,
    BuildRecord,
    Failure,
    Outcome,
    ProjectManifest,
    RunArgs,
    RunConfiguration,
    Success,
    UploadHandle,
)
from .services.archive import ArchiveService
from .services.build import BuildService
from .services.capabilities import CapabilityValidator
from .services.config_loader import ConfigResolver
from .services.filesystem import FileSystemService
from .services.results import ResultsService
from .services.sync_poller import SyncPoller
from .services.upload import UploadService
from .services.usage_reporter import UsageReporter

console = Console()
logger = logging.getLogger("specgrid")


class PipelineState(enum.Enum):
    START = "start"
    CONFIG_VALIDATED = "config_validated"
    CAPABILITIES_VALIDATED = "capabilities_validated"
    MANIFEST_RESOLVED = "manifest_resolved"
    PARALLELISM_SET = "parallelism_set"
    ARCHIVED = "archived"
    UPLOADED = "uploaded"
    BUILD_CREATED = "build_created"
    POLLED = "polled"
    REPORTED = "reported"


@dataclasses.dataclass(frozen=True)
class RunState:
    """Values produced by the stages completed so far."""

    state: PipelineState = PipelineState.START
    config: Optional[RunConfiguration] = None
    manifest: Optional[ProjectManifest] = None
    artifact: Optional[ArchiveArtifact] = None
    upload: Optional[UploadHandle] = None
    build: Optional[BuildRecord] = None


class _Stage(NamedTuple):
    name: str
    advance: Callable[[RunState], RunState]
    on_failure: Callable[[RunState, BaseException], Failure]
    exit_code: int


class SubmissionPipeline:
    """Submits a local test project as a remote build.

    Stages run strictly in order. A failing stage jumps to its own failure
    handler, which compensates and returns a Failure; the driver then reports
    the outcome once and stops. The usage reporter is only called from
    ``_finish_failure`` and ``_finish_success``.
    """

    def __init__(
        self,
        args: RunArgs,
        config_resolver: Optional[ConfigResolver] = None,
        capability_validator: Optional[CapabilityValidator] = None,
        archive_service: Optional[ArchiveService] = None,
        upload_service: Optional[UploadService] = None,
        build_service: Optional[BuildService] = None,
        sync_poller: Optional[SyncPoller] = None,
        usage_reporter: Optional[UsageReporter] = None,
        results_service: Optional[ResultsService] = None,
        filesystem_service: Optional[FileSystemService] = None,
        archive_path: Optional[str] = None,
    ):
        self.args = args
        self.config_resolver = config_resolver or ConfigResolver()
        self.capability_validator = capability_validator or CapabilityValidator(logger=logger)
        self.archive_service = archive_service or ArchiveService(logger=logger)
        self.upload_service = upload_service or UploadService(logger=logger, console=console)
        self.build_service = build_service or BuildService(logger=logger)
        self.sync_poller = sync_poller or SyncPoller(logger=logger, console=console)
        self.usage_reporter = usage_reporter or UsageReporter(logger=logger)
        self.results_service = results_service or ResultsService(logger=logger)
        self.filesystem_service = filesystem_service or FileSystemService(logger=logger)
        self.archive_path = archive_path or os.path.join(os.getcwd(), ARCHIVE_FILE_NAME)

        self.state = PipelineState.START
        self.outcome: Optional[Outcome] = None
        self._stages: Dict[PipelineState, _Stage] = {
            PipelineState.START: _Stage(
                "validate_config", self._validate_config, self._config_failed, EXIT_CONFIG_FAILED
            ),
            PipelineState.CONFIG_VALIDATED: _Stage(
                "validate_capabilities",
                self._validate_capabilities,
                self._capabilities_failed,
                EXIT_CAPABILITIES_FAILED,
            ),
            PipelineState.CAPABILITIES_VALIDATED: _Stage(
                "resolve_manifest",
                self._resolve_manifest,
                self._capabilities_failed,
                EXIT_CAPABILITIES_FAILED,
            ),
            PipelineState.MANIFEST_RESOLVED: _Stage(
                "set_parallelism",
                self._set_parallelism,
                self._capabilities_failed,
                EXIT_CAPABILITIES_FAILED,
            ),
            PipelineState.PARALLELISM_SET: _Stage(
                "create_archive", self._create_archive, self._archive_failed, EXIT_ARCHIVE_FAILED
            ),
            PipelineState.ARCHIVED: _Stage(
                "upload_archive", self._upload_archive, self._upload_failed, EXIT_UPLOAD_FAILED
            ),
            PipelineState.UPLOADED: _Stage(
                "create_build", self._create_build, self._build_failed, EXIT_BUILD_FAILED
            ),
        }

    def run(self) -> int:
        logger.debug("Starting specgrid run...")
        self._delete_stale_results()

        run_state = RunState()
        while run_state.state is not PipelineState.BUILD_CREATED:
            stage = self._stages[run_state.state]
            logger.debug("Running stage: %s", stage.name)
            try:
                run_state = stage.advance(run_state)
            except (Exception, KeyboardInterrupt) as exc:
                failure = stage.on_failure(run_state, exc)
                config = run_state.config
                if config is None:
                    config = getattr(exc, "config", None)
                return self._finish_failure(config, failure, stage.exit_code)
            self.state = run_state.state

        return self._finish_success(run_state)

    # Stage transitions

    def _validate_config(self, run_state: RunState) -> RunState:
        config = self.config_resolver.load_and_resolve(self.args)
        return dataclasses.replace(run_state, state=PipelineState.CONFIG_VALIDATED, config=config)

    def _validate_capabilities(self, run_state: RunState) -> RunState:
        manifest = self.capability_validator.validate(run_state.config, self.args)
        return dataclasses.replace(
            run_state, state=PipelineState.CAPABILITIES_VALIDATED, manifest=manifest
        )

    def _resolve_manifest(self, run_state: RunState) -> RunState:
        manifest = self.capability_validator.resolve_manifest(
            run_state.config, self.args, run_state.manifest
        )
        return dataclasses.replace(run_state, state=PipelineState.MANIFEST_RESOLVED, manifest=manifest)

    def _set_parallelism(self, run_state: RunState) -> RunState:
        spec_count = self.capability_validator.count_spec_files(
            run_state.config, self.args, run_state.manifest
        )
        config = self.capability_validator.resolve_parallels(run_state.config, self.args, spec_count)
        return dataclasses.replace(run_state, state=PipelineState.PARALLELISM_SET, config=config)

    def _create_archive(self, run_state: RunState) -> RunState:
        artifact = self.archive_service.create_archive(
            run_state.config, self.archive_path, self.args.exclude
        )
        return dataclasses.replace(run_state, state=PipelineState.ARCHIVED, artifact=artifact)

    def _upload_archive(self, run_state: RunState) -> RunState:
        upload = self.upload_service.upload(run_state.config, run_state.artifact.path)
        try:
            self.filesystem_service.delete_file(run_state.artifact.path)
        except Exception as exc:
            logger.warning("%s %s", ZIP_DELETE_FAILED, exc)
        return dataclasses.replace(
            run_state, state=PipelineState.UPLOADED, artifact=None, upload=upload
        )

    def _create_build(self, run_state: RunState) -> RunState:
        build = self.build_service.create_build(run_state.config, run_state.upload)
        return dataclasses.replace(run_state, state=PipelineState.BUILD_CREATED, build=build)

    # Failure handlers

    def _config_failed(self, run_state: RunState, exc: BaseException) -> Failure:
        logger.error(str(exc))
        return Failure(error_code=classify_error(exc), message=str(exc))

    def _capabilities_failed(self, run_state: RunState, exc: BaseException) -> Failure:
        error_code = classify_error(exc)
        logger.error(str(exc))
        # An invalid --parallels value is already explained by its own message.
        if not (error_code == "invalid_parallels_configuration" and self.args.parallels is not None):
            logger.error(NOT_VALID)
        return Failure(error_code=error_code, message=f"{exc}\n{NOT_VALID}")

    def _archive_failed(self, run_state: RunState, exc: BaseException) -> Failure:
        logger.error(str(exc))
        logger.error(FAILED_TO_ZIP)
        message = f"{exc}\n{FAILED_TO_ZIP}"
        try:
            self.filesystem_service.delete_file(self.archive_path)
        except Exception as cleanup_exc:
            logger.error("%s %s", ZIP_DELETE_FAILED, cleanup_exc)
            message = f"{message}\n{ZIP_DELETE_FAILED}"
        return Failure(error_code=ZIP_CREATION_FAILED, message=message)

    def _upload_failed(self, run_state: RunState, exc: BaseException) -> Failure:
        logger.error(str(exc))
        logger.error(ZIP_UPLOAD_FAILED_MESSAGE)
        message = f"{exc}\n{ZIP_UPLOAD_FAILED_MESSAGE}"
        try:
            self.filesystem_service.delete_file(run_state.artifact.path)
        except Exception as cleanup_exc:
            logger.error("%s %s", ZIP_DELETE_FAILED, cleanup_exc)
            message = f"{message}\n{ZIP_DELETE_FAILED}"
        return Failure(error_code=ZIP_UPLOAD_FAILED, message=message)

    def _build_failed(self, run_state: RunState, exc: BaseException) -> Failure:
        logger.error(str(exc))
        return Failure(error_code=BUILD_FAILED, message=str(exc))

    # Terminal arms

    def _finish_failure(
        self,
        config: Optional[RunConfiguration],
        failure: Failure,
        exit_code: int,
    ) -> int:
        self.outcome = failure
        self._report(config, failure.message, MESSAGE_TYPE_ERROR, failure.error_code)
        return exit_code

    def _finish_success(self, run_state: RunState) -> int:
        config, build = run_state.config, run_state.build
        message = f"{build.message}! {BUILD_CREATED} with build id: {build.build_id}"
        dashboard_link = f"{VISIT_DASHBOARD} {build.dashboard_url}"

        self.outcome = Success(message=message, dashboard_link=dashboard_link)
        # Reported once even when the local follow-up raises.
        try:
            self._export_results(build)
            self._warn_advisories(config)

            logger.info(message)
            logger.info(dashboard_link)
            if not config.sync:
                logger.info(EXIT_SYNC_CLI_MESSAGE.replace("<build-id>", build.build_id))
        finally:
            self._report(config, f"{message}\n{dashboard_link}", MESSAGE_TYPE_SUCCESS, None)

        if config.sync:
            return self._poll_until_terminal(config, build)
        return EXIT_SUCCESS

    def _poll_until_terminal(self, config: RunConfiguration, build: BuildRecord) -> int:
        try:
            exit_code = self.sync_poller.poll_until_terminal(config, build)
        except Exception:
            logger.exception("Could not track build %s", build.build_id)
            exit_code = SYNC_EXIT_ERROR
        self.state = PipelineState.POLLED
        return exit_code

    def _report(
        self,
        config: Optional[RunConfiguration],
        message: str,
        message_type: str,
        error_code: Optional[str],
    ):
        try:
            self.usage_reporter.report(config, self.args, message, message_type, error_code)
        except Exception as exc:
            logger.debug("Usage reporter failed: %s", exc)
        self.state = PipelineState.REPORTED

    # Side effects outside the stage chain

    def _delete_stale_results(self):
        try:
            self.results_service.delete()
        except OSError as exc:
            logger.warning("Could not remove stale results file: %s", exc)

    def _export_results(self, build: BuildRecord):
        try:
            self.results_service.export(build.build_id, f"{DASHBOARD_URL}{build.build_id}")
        except OSError as exc:
            logger.warning("Could not write build results file: %s", exc)

    def _warn_advisories(self, config: RunConfiguration):
        if self.args.parallels is None and config.parallels in (None, DEFAULT_PARALLEL_MESSAGE):
            logger.warning(NO_PARALLELS)

        if not self.args.disable_dependency_warning and not config.dependencies:
            logger.warning(NO_DEPENDENCIES)
            logger.warning(NO_DEPENDENCIES_READ_MORE)
