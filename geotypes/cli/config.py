import sys
from typing import List
from typing import Optional

from typer import Argument
from typer import Context as TyperContext

from geotypes.core.config import KeyFormat
from geotypes.core.config import RawConfig


def config(
    ctx: TyperContext,
    name: Optional[List[str]] = Argument(None),
    fmt: KeyFormat = KeyFormat.cfg,
):
    """Show current configuration values"""
    rc: RawConfig = ctx.obj
    rc.dump(*(name or []), fmt=fmt, file=sys.stdout)
