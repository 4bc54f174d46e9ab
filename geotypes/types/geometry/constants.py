WGS84 = 4326

# SRID 0 means that no spatial reference system is declared.
NO_SRID = 0

# Catalog (pg_type.typname) names of the PostGIS base types.
GEOMETRY = 'geometry'
GEOGRAPHY = 'geography'
SPATIAL_BASE_TYPES = frozenset([GEOMETRY, GEOGRAPHY])

# PostGIS EWKB type code flags.
EWKB_Z_FLAG = 0x80000000
EWKB_M_FLAG = 0x40000000
EWKB_SRID_FLAG = 0x20000000
EWKB_TYPE_MASK = 0x0FFFFFFF

WKB_XDR = 0  # big endian
WKB_NDR = 1  # little endian

# Nesting limit of geometry collections in EWKB values.
EWKB_MAX_DEPTH = 64
