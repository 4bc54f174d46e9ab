from __future__ import annotations

import dataclasses
import re
from typing import Any
from typing import Dict
from typing import Optional
from typing import Union

from geotypes.types.geometry.kinds import GeometryKind


@dataclasses.dataclass(frozen=True)
class TypeSpec:
    """Spatial column type descriptor.

    `kind` is `None` for generic `geometry`/`geography` columns, that are not
    narrowed down to a specific geometry kind. `srid` equal to 0 means, that
    no spatial reference system is enforced.
    """

    kind: Optional[GeometryKind] = None
    srid: int = 0
    has_z: bool = False
    has_m: bool = False
    geographic: bool = False
    array: bool = False

    def __str__(self):
        # Imported here, because helpers depend on this module.
        from geotypes.types.geometry.helpers import format_type
        return format_type(self)


class NotSpatial:

    def __repr__(self):
        return "<NOT_SPATIAL>"

    def __bool__(self):
        return False


NOT_SPATIAL = NotSpatial()

# Character and bit string types, that have a length modifier.
LENGTH_TYPE_RE = re.compile(
    r"(character varying|varchar|character|char|bit varying|varbit|bit)\((\d+)\)(\[\])?",
    re.IGNORECASE,
)


@dataclasses.dataclass(frozen=True)
class ColumnMetadata:
    name: str
    sql_type: str
    null: bool = True
    default: Any = None
    comment: Optional[str] = None
    array: bool = False
    spec: Optional[TypeSpec] = None

    @property
    def spatial(self) -> bool:
        return self.spec is not None

    @property
    def geometric_type(self) -> Optional[GeometryKind]:
        if self.spec is None:
            return None
        return self.spec.kind or GeometryKind.geometry

    @property
    def srid(self) -> Optional[int]:
        return self.spec.srid if self.spec else None

    @property
    def has_z(self) -> Optional[bool]:
        return self.spec.has_z if self.spec else None

    @property
    def has_m(self) -> Optional[bool]:
        return self.spec.has_m if self.spec else None

    @property
    def geographic(self) -> Optional[bool]:
        return self.spec.geographic if self.spec else None

    @property
    def limit(self) -> Union[Dict[str, Any], int, None]:
        """Spatial type options or length of a non spatial column."""
        if self.spec is None:
            match = LENGTH_TYPE_RE.fullmatch(self.sql_type.strip()) if self.sql_type else None
            return int(match.group(2)) if match else None
        from geotypes.types.geometry.helpers import to_limit
        return to_limit(self.spec)
