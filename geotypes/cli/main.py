from __future__ import annotations

import logging
import pathlib
from typing import List
from typing import Optional

from typer import Context as TyperContext
from typer import Option
from typer import Typer
from typer import echo

import geotypes
from geotypes.cli import config
from geotypes.cli import spatial
from geotypes.cli.helpers.typer import add
from geotypes.core.config import CliArgs
from geotypes.core.config import read_config
from geotypes.logging_config import reset_logging
from geotypes.logging_config import setup_logging

log = logging.getLogger(__name__)

app = Typer()

add(app, 'config', config.config, short_help="Show current configuration values")

add(app, 'format', spatial.format_, short_help=(
    "Render spatial column options as PostGIS column type"
))
add(app, 'parse', spatial.parse, short_help="Show spatial type details of a column type")
add(app, 'encode', spatial.encode, short_help="Encode WKT literal as EWKB hex")
add(app, 'decode', spatial.decode, short_help="Show WKT and spatial type of EWKB hex")


@app.callback(invoke_without_command=True)
def main(
    ctx: TyperContext,
    option: Optional[List[str]] = Option(None, '-o', '--option', help=(
        "Set configuration option, example: `-o option.name=value`."
    )),
    env_file: Optional[pathlib.Path] = Option(None, '--env-file', help=(
        "Load configuration from a given .env file."
    )),
    version: bool = Option(False, help="Show version number."),
    log_file: Optional[pathlib.Path] = Option(None, '--log-file', help=(
        "Write log messages to a specified file, if not given, logs are "
        "written to `logging.dir` and to STDERR."
    )),
    log_level: Optional[str] = Option(None, '--log-level', help=(
        "Log level. Possible levels: fatal, error, warning, info, debug. "
        "Default: `logging.console_level`, or warning with `--log-file`."
    )),
):
    if ctx.obj is None:
        ctx.obj = read_config(option, env_file)
    elif option:
        # Configuration was given by the caller, apply `-o` options on top.
        ctx.obj = ctx.obj.fork([CliArgs('cliargs', option)])

    if log_file:
        reset_logging()
        logging.basicConfig(
            level=logging.getLevelName((log_level or 'warning').upper()),
            format='%(asctime)s %(levelname)s: %(message)s',
            filename=log_file,
        )
    else:
        setup_logging(ctx.obj, console_level=log_level)

    log.debug("log file set to: %s", log_file or 'logging.dir')
    log.debug("log level set to: %s", log_level)

    if version:
        echo(geotypes.__version__)
