"""Archive creation for specgrid."""

import json
import os
import zipfile
from pathlib import Path
from typing import Iterable

from specgrid.constants import DEFAULT_IGNORES, DEPENDENCIES_FILE
from specgrid.errors import ArchiveError
from specgrid.models import ArchiveArtifact, RunConfiguration
from specgrid.services.filesystem import iter_files


class ArchiveService:
    """Packages the project tree into a single zip artifact."""

    def __init__(self, logger):
        self.logger = logger

    def create_archive(
        self,
        config: RunConfiguration,
        output_path: str,
        exclude: Iterable[str] = (),
    ) -> ArchiveArtifact:
        if not config.project_dir:
            raise ArchiveError("No project directory to archive.")

        base = Path(config.project_dir).resolve()
        ignores = list(DEFAULT_IGNORES) + list(config.exclude) + list(exclude)
        output = Path(output_path).resolve()
        # The archive and the credentials file never go into the archive.
        for own_file in (output, Path(config.config_path).resolve()):
            if base in own_file.parents:
                ignores.append(own_file.relative_to(base).as_posix())

        file_count = 0
        try:
            with zipfile.ZipFile(output, "w", compression=zipfile.ZIP_DEFLATED) as zip_ref:
                for relative in iter_files(str(base), exclude=ignores):
                    zip_ref.write(base / relative, arcname=relative)
                    file_count += 1

                if config.dependencies:
                    zip_ref.writestr(
                        DEPENDENCIES_FILE,
                        json.dumps(dict(config.dependencies), indent=2, sort_keys=True),
                    )
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            raise ArchiveError(f"Could not create {output}: {exc}") from exc

        if file_count == 0:
            raise ArchiveError(f"No files found to archive in {base}.")

        size = os.path.getsize(output)
        self.logger.info("Archived %s file(s) into %s (%s bytes).", file_count, output, size)
        return ArchiveArtifact(path=str(output), size=size, file_count=file_count)
