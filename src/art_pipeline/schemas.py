"""Column schemas for the report's source tables.

Each schema maps a required column to its declared type. Columns not listed
are loaded as-is and carried through untouched.

Types:
- String: text, missing cells become <NA>
- Int: nullable integer (pandas ``Int64``)
- Float: ``float64``, blank or non-numeric cells become NaN
"""

GDP_SOURCE_COLUMN = "GDP per capita (constant 2015 US$)"
GDP_COLUMN = "gdp_per_capita"

JOIN_KEYS = ["alpha_3_code", "country"]
COUNTRY_KEY = "alpha_3_code"

INDICATOR_SCHEMA = {
    "country": "String",
    "alpha_3_code": "String",
    "indicator": "String",
    "time_period": "Int",
    "obs_value": "Float",
}

METADATA_SCHEMA = {
    "country": "String",
    "alpha_3_code": "String",
    GDP_SOURCE_COLUMN: "Float",
}

GEOMETRY_SCHEMA = {
    "region": "String",
    "long": "Float",
    "lat": "Float",
    "group": "Int",
    "order": "Int",
}
