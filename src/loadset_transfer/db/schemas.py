"""Known model tables and the tokens used to find their columns.

The host programs rename and reorder columns between versions, so columns
are located by substring tokens at run time (see fields.py). Token order
matters: more specific tokens come first, and fields are resolved in the
order listed.
"""

from loadset_transfer.db.fields import FieldSpec

GROUP_ALL = "All"

# Table keys as shown under Display > Show Tables in both programs.
LOAD_SET_TABLE = "Shell Uniform Load Sets"
ASSIGNMENT_TABLE = "Area Load Assignments - Uniform Load Sets"

SET_NAME = "SetName"
LOAD_PATTERN = "LoadPattern"
VALUE = "Value"
AREA_NAME = "AreaName"
LOAD_SET = "LoadSet"

LOAD_SET_FIELDS = (
    FieldSpec(name=SET_NAME, tokens=("name", "set")),
    FieldSpec(name=LOAD_PATTERN, tokens=("pattern", "loadpat")),
    FieldSpec(name=VALUE, tokens=("value", "magnitude", "val")),
)

# The generic "set" token would match any later column containing "set";
# the area name field is resolved first so it cannot take the unique-name column.
ASSIGNMENT_FIELDS = (
    FieldSpec(name=AREA_NAME, tokens=("unique", "area", "object", "name")),
    FieldSpec(name=LOAD_SET, tokens=("load set", "uniform load set", "uload set", "set")),
)

# Canonical field lists for tables that may not exist yet in a database.
TABLE_CATALOG: dict[str, tuple[str, ...]] = {
    LOAD_SET_TABLE: ("Name", "LoadPattern", "LoadValue"),
    ASSIGNMENT_TABLE: ("UniqueName", "LoadSet"),
}
