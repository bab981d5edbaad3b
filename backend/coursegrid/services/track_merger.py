from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable

from coursegrid.models.session import Catalog
from coursegrid.models.track import Track
from coursegrid.services.catalog import all_section_names, section_prefix

SECTION_NAME_PATTERN = re.compile(r"^([A-Za-z]+)(\d+)$")
_CHUNK_PATTERN = re.compile(r"(\d+)")


def natural_key(label: str) -> tuple:
    chunks = _CHUNK_PATTERN.split(label)
    return tuple((0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk.casefold()) for chunk in chunks if chunk)


def _pair_anchor(number: int) -> int:
    return number if number % 2 == 1 else number - 1


def merge_tracks(section_names: Iterable[str]) -> list[Track]:
    """Pair section names like B1/B2 into tracks; anything else stands alone."""
    names = sorted({name.strip() for name in section_names if name and name.strip()})

    tracks: list[Track] = []
    loose: list[str] = []
    numbered: dict[str, dict[int, list[str]]] = defaultdict(lambda: defaultdict(list))
    for name in names:
        match = SECTION_NAME_PATTERN.match(name)
        if match is None:
            loose.append(name)
            continue
        numbered[match.group(1).upper()][int(match.group(2))].append(name)

    for prefix, by_number in numbered.items():
        anchors: dict[int, list[int]] = defaultdict(list)
        for number in sorted(by_number):
            anchors[_pair_anchor(number)].append(number)
        for anchor in sorted(anchors):
            members = anchors[anchor]
            section_names_for_track = tuple(raw for number in members for raw in by_number[number])
            if len(members) == 2:
                label = f"{prefix}{members[0]}/{prefix}{members[1]}"
            else:
                label = by_number[members[0]][0]
            tracks.append(Track(id=label, label=label, prefix=prefix, section_names=section_names_for_track))

    # Loose names such as "B1/B2" may spell a merged label; their ids get a suffix.
    taken = {track.id for track in tracks}
    for name in loose:
        track_id = name
        suffix = 2
        while track_id in taken:
            track_id = f"{name}#{suffix}"
            suffix += 1
        taken.add(track_id)
        tracks.append(Track(id=track_id, label=name, prefix=section_prefix(name), section_names=(name,)))

    tracks.sort(key=lambda track: (natural_key(track.label), track.id))
    return tracks


def merge_catalog_tracks(catalog: Catalog) -> list[Track]:
    return merge_tracks(all_section_names(catalog))
