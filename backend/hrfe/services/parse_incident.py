# hrfe/services/parse_incident.py

import html
import re
from dataclasses import dataclass
from typing import Dict, Tuple

# Every report is laid out as:
#   <incident number>
#   <location>  <community>
#   <incident type>
#   <unit codes, space separated>
EXPECTED_LINES = 4

STATION_PREFIX = "STN"

# Columns are padded with runs of whitespace of varying width
MULTI_SPACE_RE = re.compile(r"\s{3,}")
COLUMN_SEP = "  "


class ParseError(ValueError):
    """
    Raised when a message does not have the 4-line report layout.
    """

    def __init__(self, line_count: int):
        self.line_count = line_count
        super().__init__(f"unexpected line count: {line_count}")


@dataclass(frozen=True)
class ParsedIncident:
    id: str
    location: str
    community: str
    type: str
    apparatuses: Tuple[str, ...] = ()
    stations: Tuple[str, ...] = ()

    def to_row(self) -> Dict[str, str]:
        """
        Storage form, keyed by column name. Unit codes are kept as
        space-joined sorted tokens.
        """
        return {
            "id": self.id,
            "location": self.location,
            "community": self.community,
            "type": self.type,
            "apparatuses": " ".join(self.apparatuses),
            "station": " ".join(self.stations),
        }


def split_location(line: str) -> Tuple[str, str]:
    """
    Best-effort split of '<location>   <community>'.

    Wide whitespace gaps are normalised to two spaces first; only a line with
    exactly one such gap is split. Anything else is treated as a bare
    location with no community.
    """
    line = MULTI_SPACE_RE.sub(COLUMN_SEP, line)
    parts = line.split(COLUMN_SEP)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()
    return line, ""


def classify_units(line: str) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Split the unit line into (apparatuses, stations), deduplicated and sorted.
    """
    apparatuses = set()
    stations = set()
    for token in line.split():
        if token.startswith(STATION_PREFIX):
            stations.add(token)
            continue
        apparatuses.add(token)
    return tuple(sorted(apparatuses)), tuple(sorted(stations))


def parse_incident(text: str) -> ParsedIncident:
    text = html.unescape(text)
    lines = text.split("\n")
    if len(lines) != EXPECTED_LINES:
        raise ParseError(len(lines))

    location, community = split_location(lines[1])
    apparatuses, stations = classify_units(lines[3])

    return ParsedIncident(
        id=lines[0],
        location=location,
        community=community,
        type=lines[2],
        apparatuses=apparatuses,
        stations=stations,
    )
