import logging

import click
from rich.logging import RichHandler

from . import __version__
from .models import RunArgs, frozen_mapping
from .pipeline import SubmissionPipeline


def _split_globs(ctx, param, value):
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _parse_env(ctx, param, value):
    if not value:
        return frozen_mapping()

    env = {}
    for pair in value.split(","):
        if not pair.strip():
            continue
        key, separator, env_value = pair.partition("=")
        if not separator or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE pairs, got '{pair.strip()}'.")
        env[key.strip()] = env_value.strip()
    return frozen_mapping(env)


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.group()
@click.version_option(__version__, prog_name="specgrid")
def main():
    """Run test projects on the specgrid remote execution service."""


@main.command()
@click.option(
    "--config-file",
    "-cf",
    required=False,
    type=click.Path(),
    help="Path to the configuration file. Defaults to specgrid.yml in the current directory.",
)
@click.option("--username", "-u", required=False, help="Username; overrides the configuration file.")
@click.option("--key", "-k", "access_key", required=False, help="Access key; overrides the configuration file.")
@click.option("--build-name", required=False, help="Name of the build shown on the dashboard.")
@click.option(
    "--parallels",
    "-p",
    required=False,
    type=int,
    default=None,
    help="Number of parallel machines to use (-1 for all available).",
)
@click.option(
    "--env",
    "-e",
    required=False,
    callback=_parse_env,
    help="Test environment variables as KEY=VALUE pairs separated by commas.",
)
@click.option(
    "--specs",
    "-s",
    required=False,
    callback=_split_globs,
    help="Comma-separated spec globs; overrides run_settings.specs.",
)
@click.option(
    "--exclude",
    required=False,
    callback=_split_globs,
    help="Comma-separated globs of files to leave out of the upload.",
)
@click.option(
    "--disable-dependency-warning",
    is_flag=True,
    default=False,
    help="Do not warn when no dependencies are declared.",
)
@click.option(
    "--disable-usage-reporting",
    is_flag=True,
    default=False,
    help="Do not send usage statistics.",
)
@click.option(
    "--sync",
    is_flag=True,
    default=False,
    help="Wait for the build to finish and exit with its result.",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def run(
    config_file,
    username,
    access_key,
    build_name,
    parallels,
    env,
    specs,
    exclude,
    disable_dependency_warning,
    disable_usage_reporting,
    sync,
    verbose,
    log_file,
):
    """Submit the test project and create a remote build."""
    logger = logging.getLogger("specgrid")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    args = RunArgs(
        config_file=config_file,
        username=username,
        access_key=access_key,
        build_name=build_name,
        parallels=parallels,
        env=env,
        specs=specs,
        exclude=exclude,
        disable_dependency_warning=disable_dependency_warning,
        disable_usage_reporting=disable_usage_reporting,
        sync=sync,
    )

    raise SystemExit(SubmissionPipeline(args).run())


if __name__ == "__main__":
    main()
