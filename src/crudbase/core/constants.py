"""Shared names for query parameters, update commands and reserved fields."""

# Type names used by collection definitions
ARRAY = "Array"
GEOPOINT = "GeoPoint"
DATE = "Date"
OBJECTID = "ObjectId"
RAWOBJECTTYPE = "RawObject"

# Additional query parameters
SORT = "_s"
PROJECTION = "_p"
QUERY = "_q"
LIMIT = "_l"
SKIP = "_sk"
STATE = "_st"
MONGOID = "_id"
RAW_PROJECTION = "_rawp"

# Update commands
SETCMD = "$set"
UNSETCMD = "$unset"
INCCMD = "$inc"
MULCMD = "$mul"
CURDATECMD = "$currentDate"
SETONINSERTCMD = "$setOnInsert"
PUSHCMD = "$push"
PULLCMD = "$pull"
ADDTOSETCMD = "$addToSet"

# Reserved fields
UPDATERID = "updaterId"
UPDATEDAT = "updatedAt"
CREATORID = "creatorId"
CREATEDAT = "createdAt"
STATE_FIELD = "__STATE__"

MANDATORY_FIELDS = frozenset({
    MONGOID,
    UPDATERID,
    UPDATEDAT,
    CREATORID,
    CREATEDAT,
    STATE_FIELD,
})

DATE_FORMATS = ("date-time", "time", "date", "duration")

# Array element update operators, used as `<field>.$.<operator>`
ARRAY_MERGE_ELEMENT_OPERATOR = "merge"
ARRAY_REPLACE_ELEMENT_OPERATOR = "replace"

JSON_SCHEMA_ARRAY_TYPE = "array"
JSON_SCHEMA_OBJECT_TYPE = "object"

UNIQUE_OPERATION_ID = "operationId"
MIA_CONFIGURATION = "__mia_configuration"

# Index types
NORMAL_INDEX = "normal"
HASHED_INDEX = "hash"
GEO_INDEX = "geo"
TEXT_INDEX = "text"

TEXT_SEARCH_OPTIONS = ("$search", "$language", "$caseSensitive", "$diacriticSensitive")

# Operators and variables a raw projection (`_rawp`) may or may not reference
RAW_PROJECTION_ALLOWED_OPERATORS = (
    "$eq", "$gt", "$gte", "$in", "$lt", "$lte", "$ne", "$nin",
    "$and", "$not", "$nor", "$or",
    "$exists", "$type", "$cond", "$regexMatch", "$mod",
    "$all", "$elemMatch", "$size",
    "$filter", "$reduce", "$concatArrays", "$first", "$map",
    "$dateToString",
)
RAW_PROJECTION_FORBIDDEN_VARIABLES = (
    "$$ROOT",
    "$$CURRENT",
    "$$PRUNE",
    "$$DESCEND",
    "$$KEEP",
    "$$CLUSTER_TIME",
    "$$REMOVE",
    "$$NOW",
)
