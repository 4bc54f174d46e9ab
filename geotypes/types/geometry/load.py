"""
Spatial type declaration parsing.

A `TypeSpec` can be built from three sources, which must always agree:

- column declaration options, `{'type': 'st_point', 'srid': 4326}`,
- column type strings generated by `format_type`, `geometry(point,4326)`,
- catalog rows, where the base type name (`geometry` or `geography`) and the
  type modifier come from the same query used for all other columns.
"""

import logging
from typing import Any
from typing import Dict
from typing import Iterator
from typing import List
from typing import Mapping
from typing import NamedTuple
from typing import Optional
from typing import Union

from geotypes.exceptions import InvalidOption
from geotypes.exceptions import MalformedTypeString
from geotypes.exceptions import UnknownKind
from geotypes.types.geometry.components import NOT_SPATIAL
from geotypes.types.geometry.components import NotSpatial
from geotypes.types.geometry.components import TypeSpec
from geotypes.types.geometry.constants import GEOGRAPHY
from geotypes.types.geometry.constants import GEOMETRY
from geotypes.types.geometry.constants import NO_SRID
from geotypes.types.geometry.constants import SPATIAL_BASE_TYPES
from geotypes.types.geometry.constants import WGS84
from geotypes.types.geometry.kinds import GeometryKind
from geotypes.types.geometry.kinds import lookup_by_name

log = logging.getLogger(__name__)

DIGITS = frozenset('0123456789')

TRUE_VALUES = frozenset(['1', 'true', 'yes', 'on'])
FALSE_VALUES = frozenset(['0', 'false', 'no', 'off', ''])


SPEC_OPTIONS = frozenset([
    'type',
    'srid',
    'geographic',
    'has_z',
    'has_m',
    'array',
])

# Column level options, that are valid in a declaration, but are not part of
# the spatial type.
COLUMN_OPTIONS = frozenset([
    'default',
    'null',
    'comment',
    'limit',
])


def default_srid(geographic: bool) -> int:
    return WGS84 if geographic else NO_SRID


def _generic(kind: GeometryKind) -> Optional[GeometryKind]:
    return None if kind is GeometryKind.geometry else kind


def _is_base_type(value: Any) -> bool:
    if value is None or value is GeometryKind.geometry:
        return True
    return isinstance(value, str) and value.strip().lower() in SPATIAL_BASE_TYPES


def _is_geography(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == GEOGRAPHY


def _parse_srid(value: Any, *, column: str = None) -> int:
    if isinstance(value, bool):
        raise InvalidOption(option='srid', value=value, column=column)
    if isinstance(value, str) and value.strip() and set(value.strip()) <= DIGITS:
        return int(value)
    if isinstance(value, int) and value >= 0:
        return value
    raise InvalidOption(option='srid', value=value, column=column)


def _parse_bool(options: Mapping[str, Any], name: str, *, column: str = None) -> Optional[bool]:
    value = options.get(name)
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_VALUES:
            return True
        if text in FALSE_VALUES:
            return False
    raise InvalidOption(option=name, value=value, column=column)


def _parse_limit(limit: Any, *, column: str = None) -> Dict[str, Any]:
    if isinstance(limit, Mapping):
        return dict(limit)
    if isinstance(limit, str):
        # Same as column type modifier: `point,4326`, `pointz` or `4326`.
        return _Parser(limit, column=column).parse_limit()
    raise InvalidOption(option='limit', value=limit, column=column)


def from_options(options: Mapping[str, Any], *, column: str = None) -> TypeSpec:
    options = dict(options)
    base = options.get('type')

    limit = options.get('limit')
    if limit is not None:
        limit = _parse_limit(limit, column=column)
        # Explicit options take precedence over `limit`, but a base type
        # (`geometry` or `geography`) is narrowed down by the `limit` kind.
        options = {**limit, **options}
        if limit.get('type') is not None and _is_base_type(base):
            options['type'] = limit['type']

    ignored = set(options) - SPEC_OPTIONS - COLUMN_OPTIONS
    if ignored:
        log.debug("Ignoring unknown spatial column options: %s.", ', '.join(sorted(ignored)))

    type_ = options.get('type') or GEOMETRY
    if isinstance(type_, GeometryKind):
        kind = type_
    else:
        kind = lookup_by_name(str(type_), column=column)

    geographic = _parse_bool(options, 'geographic', column=column)
    if geographic is None:
        geographic = _is_geography(base) or _is_geography(type_)

    if options.get('srid') is None:
        srid = default_srid(geographic)
    else:
        srid = _parse_srid(options['srid'], column=column)

    return TypeSpec(
        kind=_generic(kind),
        srid=srid,
        has_z=bool(_parse_bool(options, 'has_z', column=column)),
        has_m=bool(_parse_bool(options, 'has_m', column=column)),
        geographic=geographic,
        array=bool(_parse_bool(options, 'array', column=column)),
    )


class Token(NamedTuple):
    type: str
    value: str
    pos: int


WORD = 'word'
NUMBER = 'number'
PUNCTUATION = {
    '(': 'lparen',
    ')': 'rparen',
    ',': 'comma',
    '[': 'lbracket',
    ']': 'rbracket',
}
END = 'end'


def _tokenize(text: str, *, column: str = None) -> Iterator[Token]:
    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        if char.isspace():
            i += 1
        elif char in PUNCTUATION:
            yield Token(PUNCTUATION[char], char, i)
            i += 1
        elif char in DIGITS:
            start = i
            while i < n and text[i] in DIGITS:
                i += 1
            yield Token(NUMBER, text[start:i], start)
        elif char.isalpha() or char == '_':
            start = i
            while i < n and (text[i].isalnum() or text[i] == '_'):
                i += 1
            yield Token(WORD, text[start:i], start)
        else:
            raise MalformedTypeString(
                text=text,
                reason=f"unexpected character {char!r} at position {i}",
                column=column,
            )
    yield Token(END, '', n)


class _Parser:
    """Recursive descent parser for spatial column types.

        type     := keyword [ "(" args ")" ] [ "[" "]" ]
        limit    := args
        keyword  := "geometry" | "geography"
        args     := srid | kind [ "," srid ]
        kind     := name [ "Z" | "M" | "ZM" ]
        srid     := digits

    """

    def __init__(self, text: str, *, column: str = None):
        self.text = text
        self.column = column
        self.tokens: List[Token] = list(_tokenize(text, column=column))
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def error(self, reason: str) -> MalformedTypeString:
        return MalformedTypeString(text=self.text, reason=reason, column=self.column)

    def accept(self, type_: str) -> Optional[Token]:
        token = self.current
        if token.type == type_:
            self.pos += 1
            return token
        return None

    def expect(self, type_: str, reason: str) -> Token:
        token = self.accept(type_)
        if token is None:
            raise self.error(reason)
        return token

    def parse(self) -> TypeSpec:
        keyword = self.expect(WORD, "expected geometry or geography").value.lower()
        if keyword not in SPATIAL_BASE_TYPES:
            raise self.error(f"expected geometry or geography, got {keyword!r}")
        geographic = keyword == GEOGRAPHY

        args = {}
        if self.accept('lparen'):
            args = self.parse_args()
            self.expect('rparen', "unbalanced parentheses")

        array = False
        if self.accept('lbracket'):
            self.expect('rbracket', "unbalanced brackets")
            array = True

        self.expect_end()

        srid = args.get('srid')
        return TypeSpec(
            kind=args.get('type'),
            srid=default_srid(geographic) if srid is None else srid,
            has_z=args.get('has_z', False),
            has_m=args.get('has_m', False),
            geographic=geographic,
            array=array,
        )

    def parse_limit(self) -> Dict[str, Any]:
        args = self.parse_args()
        self.expect_end()
        return args

    def parse_args(self) -> Dict[str, Any]:
        args = {}
        number = self.accept(NUMBER)
        if number is not None:
            args['srid'] = int(number.value)
            return args
        token = self.expect(WORD, "missing geometry kind")
        kind, args['has_z'], args['has_m'] = self.parse_kind(token.value)
        if kind is not None:
            args['type'] = kind
        if self.accept('comma'):
            args['srid'] = int(self.expect(NUMBER, "SRID must be a non-negative integer").value)
        return args

    def expect_end(self):
        if self.current.type != END:
            raise self.error(f"unexpected {self.current.value!r} at position {self.current.pos}")

    def parse_kind(self, token: str):
        name = token.lower()
        for suffix, has_z, has_m in (
            ('', False, False),
            ('zm', True, True),
            ('z', True, False),
            ('m', False, True),
        ):
            if suffix and not name.endswith(suffix):
                continue
            base = name[:len(name) - len(suffix)]
            try:
                kind = lookup_by_name(base, column=self.column)
            except UnknownKind:
                continue
            return _generic(kind), has_z, has_m
        # Nothing matched, report the kind name without dimension suffix.
        return _generic(lookup_by_name(token, column=self.column)), False, False


def from_sql_type_string(text: str, *, column: str = None) -> TypeSpec:
    if not isinstance(text, str) or not text.strip():
        raise MalformedTypeString(text=text, reason="empty type", column=column)
    return _Parser(text, column=column).parse()


def from_catalog_row(
    raw_type: str,
    attributes: Mapping[str, Any],
    *,
    column: str = None,
) -> Union[TypeSpec, NotSpatial]:
    if not isinstance(raw_type, str):
        return NOT_SPATIAL
    base = raw_type.strip().lower()
    if base not in SPATIAL_BASE_TYPES:
        return NOT_SPATIAL

    text = attributes.get('format_type')
    if text:
        text = text.strip()
        if not text.lower().startswith(base):
            raise MalformedTypeString(
                text=text,
                reason=f"does not match catalog type {raw_type!r}",
                column=column,
            )
    else:
        text = base
        modifier = (attributes.get('type_modifier') or '').strip()
        if modifier:
            if not modifier.startswith('('):
                modifier = f'({modifier})'
            text += modifier

    if attributes.get('array') and not text.endswith(']'):
        text += '[]'

    return from_sql_type_string(text, column=column)
