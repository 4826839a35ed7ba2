"""
Country Resolver - free-text country/region names to ISO alpha-3 codes.

The lookup table is built once from pycountry (names, official names,
common names and the codes themselves) and extended with aliases used by
map geometry files and UN-style country lists.

Unresolved names are returned as None and counted; they are never guessed
and never raise.
"""

import functools
from collections import Counter
from typing import Dict, Optional

import pandas as pd
import pycountry

from art_pipeline.logging_config import create_logger

logger = create_logger(__name__)


# Names found in map geometry data and UN country lists that pycountry
# does not carry verbatim.
COUNTRY_ALIASES: Dict[str, str] = {
    # Map geometry region names
    "usa": "USA", "uk": "GBR", "russia": "RUS",
    "democratic republic of the congo": "COD", "democratic republic of congo": "COD",
    "republic of congo": "COG", "ivory coast": "CIV",
    "swaziland": "SWZ", "laos": "LAO", "vietnam": "VNM", "syria": "SYR",
    "iran": "IRN", "south korea": "KOR", "north korea": "PRK",
    "tanzania": "TZA", "bolivia": "BOL", "venezuela": "VEN", "moldova": "MDA",
    "macedonia": "MKD", "czech republic": "CZE", "cape verde": "CPV",
    "micronesia": "FSM", "brunei": "BRN", "palestine": "PSE", "taiwan": "TWN",
    "turkey": "TUR", "vatican": "VAT", "curacao": "CUW", "reunion": "REU",
    "sint maarten": "SXM", "falkland islands": "FLK", "heard island": "HMD",

    # Twin-island states are split into separate regions in map data
    "trinidad": "TTO", "tobago": "TTO",
    "antigua": "ATG", "barbuda": "ATG",
    "saint kitts": "KNA", "nevis": "KNA",
    "saint vincent": "VCT", "grenadines": "VCT",

    # UN / UNICEF naming
    "bolivia (plurinational state of)": "BOL",
    "iran (islamic republic of)": "IRN",
    "venezuela (bolivarian republic of)": "VEN",
    "micronesia (federated states of)": "FSM",
    "netherlands (kingdom of the)": "NLD",
    "republic of korea": "KOR",
    "democratic people's republic of korea": "PRK",
    "republic of moldova": "MDA",
    "united republic of tanzania": "TZA",
    "state of palestine": "PSE",
    "türkiye": "TUR",
}


def normalize_name(name: str) -> str:
    """Case-fold a name and collapse internal whitespace."""
    return " ".join(str(name).casefold().split())


class CountryCodeResolver:
    """Resolve free-text country names to ISO 3166-1 alpha-3 codes."""

    def __init__(self, aliases: Optional[Dict[str, str]] = None):
        self.table = self._build_table(COUNTRY_ALIASES if aliases is None else aliases)
        self.misses: Counter = Counter()
        logger.debug(f"Country code table built with {len(self.table)} names")

    @staticmethod
    def _build_table(aliases: Dict[str, str]) -> Dict[str, str]:
        table: Dict[str, str] = {}
        for country in pycountry.countries:
            code = country.alpha_3
            table[normalize_name(code)] = code
            for attr in ("name", "official_name", "common_name"):
                value = getattr(country, attr, None)
                if value:
                    table[normalize_name(value)] = code
        for alias, code in aliases.items():
            table[normalize_name(alias)] = code
        return table

    def resolve(self, name) -> Optional[str]:
        """Return the alpha-3 code for ``name``, or None if unresolvable."""
        if name is None or pd.isna(name) or not str(name).strip():
            self.misses[""] += 1
            return None

        code = self.table.get(normalize_name(name))
        if code is None:
            self.misses[str(name)] += 1
        return code

    def resolve_frame(
        self,
        frame: pd.DataFrame,
        name_column: str = "region",
        code_column: str = "alpha_3_code",
    ) -> pd.DataFrame:
        """Return a copy of ``frame`` with a resolved code column.

        Names are resolved once each; unresolved rows keep a missing code.
        """
        names = frame[name_column]
        codes = {name: self.resolve(name) for name in names.drop_duplicates()}
        resolved = frame.copy()
        resolved[code_column] = pd.Series(
            [codes.get(name) for name in names], index=frame.index, dtype=object
        )

        unresolved = sorted(str(n) for n, c in codes.items() if c is None)
        if unresolved:
            rows = int(resolved[code_column].isna().sum())
            logger.warning(
                f"🌍 {len(unresolved)} name(s) in '{name_column}' could not be "
                f"resolved to a country code ({rows} rows): {unresolved[:10]}"
                f"{'...' if len(unresolved) > 10 else ''}"
            )
        return resolved


@functools.lru_cache(maxsize=1)
def get_resolver() -> CountryCodeResolver:
    """Return the process-wide resolver, building its table on first use."""
    return CountryCodeResolver()


def resolve_country_code(name) -> Optional[str]:
    """Resolve a single name with the process-wide resolver."""
    return get_resolver().resolve(name)
