#!/usr/bin/env python3
"""Pure Python metro-line -> ASCII/Unicode renderer.

Ported from the Rust metro crate
https://github.com/vallentin/metro
MIT License
Copyright (c) Christian Vallentin

Turns a sequence of track events (stations, splits, joins, stops) into a
commit-graph style text diagram:

    * A
    |\\
    | * B
    |/
    * C

Supports:
- Event lists (Station, SplitTrack, JoinTrack, StopTrack, ...)
- A fluent builder (Metro / Track) that records the same events
- A line-oriented event script format, rendered by the CLI
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, Iterable, Iterator, List, Optional, Tuple, Union, TextIO
import argparse
import logging
import sys

logger = logging.getLogger(__name__)

TrackId = Hashable

# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class Station:
    track_id: TrackId
    text: str


@dataclass(frozen=True)
class DetachedStation:
    """Station text not tied to any track; every column is drawn as a rail."""
    text: str


@dataclass(frozen=True)
class StartTrack:
    track_id: TrackId


@dataclass(frozen=True)
class StartTracks:
    track_ids: Tuple[TrackId, ...]


@dataclass(frozen=True)
class SplitTrack:
    from_track_id: TrackId
    new_track_id: TrackId


@dataclass(frozen=True)
class JoinTrack:
    from_track_id: TrackId
    to_track_id: TrackId


@dataclass(frozen=True)
class StopTrack:
    track_id: TrackId


@dataclass(frozen=True)
class NoEvent:
    pass


Event = Union[Station, DetachedStation, StartTrack, StartTracks, SplitTrack, JoinTrack, StopTrack, NoEvent]


# =============================================================================
# Errors
# =============================================================================

class MetroError(ValueError):
    """Base class for event sequences that cannot be laid out."""

    def __init__(self, message: str, track_id: Optional[TrackId] = None):
        super().__init__(message)
        self.track_id = track_id


class DuplicateTrackError(MetroError):
    def __init__(self, track_id: TrackId):
        super().__init__(f"Track {track_id!r} already exists", track_id)


class MissingOrClosedTrackError(MetroError):
    def __init__(self, track_id: TrackId):
        super().__init__(f"Track {track_id!r} does not exist or was already stopped/joined", track_id)


class SelfJoinError(MetroError):
    def __init__(self, track_id: TrackId):
        super().__init__(f"Track {track_id!r} cannot be joined into itself", track_id)


# =============================================================================
# Config
# =============================================================================

@dataclass(frozen=True)
class Glyphs:
    station: str
    rail: str
    split: str
    join: str
    bridge: str
    stop: str


ASCII_GLYPHS = Glyphs(station='*', rail='|', split='\\', join='/', bridge='_', stop='"')
UNICODE_GLYPHS = Glyphs(station='●', rail='│', split='╲', join='╱', bridge='_', stop='╵')


DEFAULT_TRACK = 0


@dataclass
class MetroConfig:
    use_unicode: bool = False
    # Tracks that exist before the first event, leftmost first.
    initial_tracks: Tuple[TrackId, ...] = (DEFAULT_TRACK,)

    @property
    def glyphs(self) -> Glyphs:
        return UNICODE_GLYPHS if self.use_unicode else ASCII_GLYPHS


# =============================================================================
# Track registry
# =============================================================================

class TrackStatus(Enum):
    ACTIVE = 'active'
    STOPPED = 'stopped'
    JOINED = 'joined'


class TrackRegistry:
    """Live column assignment for every active track.

    ``_columns`` maps id -> column and ``_order`` maps column -> id. Both are
    rewritten together by ``_insert`` and ``_remove`` and nowhere else, so the
    columns of the active tracks are always exactly ``0..len(self) - 1``.

    Every operation validates before mutating: a failing call leaves the
    registry untouched.
    """

    def __init__(self, track_ids: Iterable[TrackId] = ()):
        self._status: Dict[TrackId, TrackStatus] = {}
        self._columns: Dict[TrackId, int] = {}
        self._order: List[TrackId] = []
        for track_id in track_ids:
            self.register(track_id)

    def __len__(self) -> int:
        return len(self._order)

    def status(self, track_id: TrackId) -> Optional[TrackStatus]:
        return self._status.get(track_id)

    def is_active(self, track_id: TrackId) -> bool:
        return self._status.get(track_id) is TrackStatus.ACTIVE

    def active_columns(self) -> Tuple[TrackId, ...]:
        return tuple(self._order)

    def column(self, track_id: TrackId) -> int:
        self._require_active(track_id)
        return self._columns[track_id]

    station_column = column

    def register(self, track_id: TrackId) -> int:
        self._require_unused(track_id)
        column = len(self._order)
        self._insert(column, track_id)
        logger.debug("registered track %r at column %d", track_id, column)
        return column

    def split(self, from_track_id: TrackId, new_track_id: TrackId) -> int:
        self._require_active(from_track_id)
        self._require_unused(new_track_id)
        column = self._columns[from_track_id] + 1
        self._insert(column, new_track_id)
        logger.debug("split track %r from %r at column %d", new_track_id, from_track_id, column)
        return column

    def join(self, from_track_id: TrackId, to_track_id: TrackId) -> Tuple[int, int, int]:
        if from_track_id == to_track_id:
            raise SelfJoinError(from_track_id)
        self._require_active(from_track_id)
        self._require_active(to_track_id)
        from_column = self._columns[from_track_id]
        to_column = self._columns[to_track_id]
        self._remove(from_track_id, TrackStatus.JOINED)
        logger.debug("joined track %r (column %d) into %r (column %d)",
                     from_track_id, from_column, to_track_id, to_column)
        return from_column, to_column, abs(from_column - to_column)

    def stop(self, track_id: TrackId) -> Tuple[int, int]:
        self._require_active(track_id)
        column = self._columns[track_id]
        shifted = len(self._order) - column - 1
        self._remove(track_id, TrackStatus.STOPPED)
        logger.debug("stopped track %r at column %d, %d columns shift left", track_id, column, shifted)
        return column, shifted

    def _require_active(self, track_id: TrackId) -> None:
        if not self.is_active(track_id):
            raise MissingOrClosedTrackError(track_id)

    def _require_unused(self, track_id: TrackId) -> None:
        # Stopped and joined ids are never handed out again.
        if track_id in self._status:
            raise DuplicateTrackError(track_id)

    def _insert(self, column: int, track_id: TrackId) -> None:
        self._order.insert(column, track_id)
        self._status[track_id] = TrackStatus.ACTIVE
        for i in range(column, len(self._order)):
            self._columns[self._order[i]] = i

    def _remove(self, track_id: TrackId, status: TrackStatus) -> None:
        column = self._columns.pop(track_id)
        del self._order[column]
        self._status[track_id] = status
        for i in range(column, len(self._order)):
            self._columns[self._order[i]] = i


# =============================================================================
# Rows
# =============================================================================

class RowKind(Enum):
    STATION = 'station'
    DETACHED = 'detached'
    CONNECTOR = 'connector'
    TRANSITION = 'transition'


@dataclass(frozen=True)
class Row:
    """One output line.

    ``cells`` holds one two-character cell per column: the rail glyph of the
    column followed by the glyph in the gap to its right.
    """
    kind: RowKind
    cells: Tuple[str, ...]
    text: Optional[str] = None


def mk_line(columns: int) -> List[str]:
    return [' '] * (2 * columns)


def rail_pos(column: int) -> int:
    return 2 * column


def gap_pos(column: int) -> int:
    return 2 * column + 1


def line_to_cells(line: List[str]) -> Tuple[str, ...]:
    return tuple(''.join(line[i:i + 2]) for i in range(0, len(line), 2))


# =============================================================================
# Layout engine
# =============================================================================

class LayoutEngine:
    """Lays out one event at a time against a private TrackRegistry."""

    def __init__(self, config: Optional[MetroConfig] = None):
        self.config = config or MetroConfig()
        self.glyphs = self.config.glyphs
        self.registry = TrackRegistry(self.config.initial_tracks)

    def layout(self, event: Event) -> List[Row]:
        logger.debug("layout %r", event)
        if isinstance(event, Station):
            return [self._station(event)]
        if isinstance(event, DetachedStation):
            return [self._rails(RowKind.DETACHED, len(self.registry), event.text)]
        if isinstance(event, NoEvent):
            return self._connector()
        if isinstance(event, StartTrack):
            return self._start((event.track_id,))
        if isinstance(event, StartTracks):
            return self._start(tuple(event.track_ids))
        if isinstance(event, SplitTrack):
            return [self._split(event)]
        if isinstance(event, JoinTrack):
            return self._join(event)
        if isinstance(event, StopTrack):
            return self._stop(event)
        raise TypeError(f"Unknown event: {event!r}")

    def _rails(self, kind: RowKind, columns: int, text: Optional[str] = None) -> Row:
        line = mk_line(columns)
        for c in range(columns):
            line[rail_pos(c)] = self.glyphs.rail
        return Row(kind, line_to_cells(line), text)

    def _connector(self) -> List[Row]:
        if not len(self.registry):
            return []
        return [self._rails(RowKind.CONNECTOR, len(self.registry))]

    def _station(self, event: Station) -> Row:
        column = self.registry.station_column(event.track_id)
        row = self._rails(RowKind.STATION, len(self.registry), event.text)
        cells = list(row.cells)
        cells[column] = self.glyphs.station + cells[column][1]
        return Row(RowKind.STATION, tuple(cells), event.text)

    def _start(self, track_ids: Tuple[TrackId, ...]) -> List[Row]:
        seen = set()
        for track_id in track_ids:
            if track_id in seen or self.registry.status(track_id) is not None:
                raise DuplicateTrackError(track_id)
            seen.add(track_id)
        had_tracks = len(self.registry) > 0
        for track_id in track_ids:
            self.registry.register(track_id)
        if not had_tracks or not track_ids:
            return []
        return self._connector()

    def _split(self, event: SplitTrack) -> Row:
        column = self.registry.split(event.from_track_id, event.new_track_id)
        parent = column - 1
        columns = len(self.registry) - 1
        line = mk_line(columns)
        for c in range(parent + 1):
            line[rail_pos(c)] = self.glyphs.rail
        for c in range(parent, columns):
            line[gap_pos(c)] = self.glyphs.split
        return Row(RowKind.TRANSITION, line_to_cells(line))

    def _join(self, event: JoinTrack) -> List[Row]:
        # The higher column always folds into the lower one, whichever of the
        # two is the source. When the source is on the left, the surviving
        # track is drawn continuing on the source's line afterwards.
        from_column, to_column, distance = self.registry.join(event.from_track_id, event.to_track_id)
        lo, hi = min(from_column, to_column), max(from_column, to_column)
        before = len(self.registry) + 1
        rows: List[Row] = []
        for k in range(1, distance + 1):
            target = hi - k
            if k == 1:
                line = mk_line(before)
                for c in range(hi):
                    line[rail_pos(c)] = self.glyphs.rail
                for c in range(hi + 1, before):
                    line[gap_pos(c - 1)] = self.glyphs.join
            else:
                line = mk_line(before - 1)
                for c in range(before - 1):
                    line[rail_pos(c)] = self.glyphs.rail
            for c in range(lo + 1, target):
                line[gap_pos(c)] = self.glyphs.bridge
            line[gap_pos(target)] = self.glyphs.join
            rows.append(Row(RowKind.TRANSITION, line_to_cells(line)))
        return rows

    def _stop(self, event: StopTrack) -> List[Row]:
        column, shifted = self.registry.stop(event.track_id)
        before = column + shifted + 1
        line = mk_line(before)
        for c in range(before):
            line[rail_pos(c)] = self.glyphs.stop if c == column else self.glyphs.rail
        rows = [Row(RowKind.TRANSITION, line_to_cells(line))]
        for k in range(1, shifted + 1):
            moving = column + k
            line = mk_line(before)
            for c in range(column):
                line[rail_pos(c)] = self.glyphs.rail
            for c in range(column + 1, moving):
                line[rail_pos(c - 1)] = self.glyphs.rail
            line[gap_pos(moving - 1)] = self.glyphs.join
            for c in range(moving + 1, before):
                line[rail_pos(c)] = self.glyphs.rail
            rows.append(Row(RowKind.TRANSITION, line_to_cells(line)))
        return rows


def iter_rows(events: Iterable[Event], config: Optional[MetroConfig] = None) -> Iterator[Row]:
    engine = LayoutEngine(config)
    for event in events:
        # layout() finishes the whole event before anything is yielded.
        yield from engine.layout(event)


# =============================================================================
# Renderer
# =============================================================================

def render_row(row: Row) -> str:
    glyphs = ''.join(row.cells).rstrip()
    if not row.text:
        return glyphs
    if not glyphs:
        return row.text.rstrip()
    return f"{glyphs} {row.text}".rstrip()


def render_rows(rows: Iterable[Row]) -> str:
    return '\n'.join(render_row(row) for row in rows)


# =============================================================================
# Output
# =============================================================================

def iter_lines(events: Iterable[Event], config: Optional[MetroConfig] = None) -> Iterator[str]:
    for row in iter_rows(events, config):
        yield render_row(row)


def render_lines(events: Iterable[Event], config: Optional[MetroConfig] = None) -> List[str]:
    return list(iter_lines(events, config))


def to_string(events: Iterable[Event], config: Optional[MetroConfig] = None) -> str:
    return '\n'.join(iter_lines(events, config))


def to_bytes(events: Iterable[Event], config: Optional[MetroConfig] = None, encoding: str = 'utf-8') -> bytes:
    return to_string(events, config).encode(encoding)


def to_writer(writer: TextIO, events: Iterable[Event], config: Optional[MetroConfig] = None) -> None:
    """Write the diagram to a text stream.

    Lines are written as soon as their event has been laid out, so on a
    failing event everything before it is already in ``writer``.
    """
    for i, line in enumerate(iter_lines(events, config)):
        if i:
            writer.write('\n')
        writer.write(line)


# =============================================================================
# Builder
# =============================================================================

class Metro:
    """Records events through Track handles instead of building a list by hand.

    Track ``DEFAULT_TRACK`` already exists when an event list is rendered, so
    handing it out records no event. Every other track gets its own
    StartTrack or SplitTrack event, and ``to_events()`` renders as-is with
    the module-level ``to_string``.
    """

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._tracks: Dict[TrackId, Track] = {}
        self._used: set = set()
        self._next_id = 0

    def _take_id(self) -> int:
        while self._next_id in self._used:
            self._next_id += 1
        track_id = self._next_id
        self._next_id += 1
        return track_id

    def _open(self, track_id: TrackId) -> Track:
        if track_id in self._used:
            raise DuplicateTrackError(track_id)
        self._used.add(track_id)
        track = Track(self, track_id)
        self._tracks[track_id] = track
        return track

    def _close(self, track: Track) -> None:
        self._tracks.pop(track.id, None)

    def _add(self, event: Event) -> None:
        self._events.append(event)

    def new_track(self) -> Track:
        return self.new_track_with_id(self._take_id())

    def new_track_with_id(self, track_id: TrackId) -> Track:
        track = self._open(track_id)
        if track_id != DEFAULT_TRACK:
            self._add(StartTrack(track_id))
        return track

    def get_track(self, track_id: TrackId) -> Optional[Track]:
        return self._tracks.get(track_id)

    def add_station(self, text: str) -> None:
        self._add(DetachedStation(text))

    def add_spacer(self) -> None:
        self._add(NoEvent())

    def to_events(self) -> List[Event]:
        return list(self._events)

    def to_string(self, use_unicode: bool = False) -> str:
        return to_string(self._events, MetroConfig(use_unicode=use_unicode))

    def to_bytes(self, use_unicode: bool = False, encoding: str = 'utf-8') -> bytes:
        return to_bytes(self._events, MetroConfig(use_unicode=use_unicode), encoding)

    def to_writer(self, writer: TextIO, use_unicode: bool = False) -> None:
        to_writer(writer, self._events, MetroConfig(use_unicode=use_unicode))


class Track:
    def __init__(self, metro: Metro, track_id: TrackId):
        self._metro = metro
        self._id = track_id
        self._closed = False

    def __repr__(self) -> str:
        return f"Track(id={self._id!r})"

    @property
    def id(self) -> TrackId:
        return self._id

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise MissingOrClosedTrackError(self._id)

    def _finish(self) -> None:
        self._closed = True
        self._metro._close(self)

    def add_station(self, text: str) -> None:
        self._check_open()
        self._metro._add(Station(self._id, text))

    def split(self) -> Track:
        return self.split_with_id(self._metro._take_id())

    def split_with_id(self, new_track_id: TrackId) -> Track:
        self._check_open()
        track = self._metro._open(new_track_id)
        self._metro._add(SplitTrack(self._id, new_track_id))
        return track

    def join(self, to_track: Track) -> None:
        self._check_open()
        to_track._check_open()
        if to_track is self or to_track.id == self._id:
            raise SelfJoinError(self._id)
        self._metro._add(JoinTrack(self._id, to_track.id))
        self._finish()

    def stop(self) -> None:
        self._check_open()
        self._metro._add(StopTrack(self._id))
        self._finish()


# =============================================================================
# Parser: event script
# =============================================================================

def parse_track_id(token: str) -> TrackId:
    return int(token) if token.isdecimal() else token


def parse_metro_script(text: str) -> List[Event]:
    events: List[Event] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        parts = line.split(None, 1)
        keyword = parts[0].lower()
        rest = parts[1] if len(parts) > 1 else ''
        args = rest.split()

        if keyword == 'station':
            pieces = rest.split(None, 1)
            if not pieces:
                raise ValueError(f"Line {lineno}: 'station' needs a track id")
            events.append(Station(parse_track_id(pieces[0]), pieces[1] if len(pieces) > 1 else ''))
        elif keyword == 'detached':
            events.append(DetachedStation(rest))
        elif keyword == 'start':
            if not args:
                raise ValueError(f"Line {lineno}: 'start' needs at least one track id")
            ids = tuple(parse_track_id(a) for a in args)
            events.append(StartTrack(ids[0]) if len(ids) == 1 else StartTracks(ids))
        elif keyword in ('split', 'join'):
            if len(args) != 2:
                raise ValueError(f"Line {lineno}: '{keyword}' needs exactly two track ids")
            frm, to = parse_track_id(args[0]), parse_track_id(args[1])
            events.append(SplitTrack(frm, to) if keyword == 'split' else JoinTrack(frm, to))
        elif keyword == 'stop':
            if len(args) != 1:
                raise ValueError(f"Line {lineno}: 'stop' needs exactly one track id")
            events.append(StopTrack(parse_track_id(args[0])))
        elif keyword == 'noevent':
            if args:
                raise ValueError(f"Line {lineno}: 'noevent' takes no arguments")
            events.append(NoEvent())
        else:
            raise ValueError(f"Line {lineno}: unknown event \"{parts[0]}\". Expected station, detached, start, split, join, stop or noevent")
    return events


# =============================================================================
# Top-level render
# =============================================================================

def render_metro_script(text: str, use_unicode: bool = False, default_track: bool = True) -> str:
    config = MetroConfig(
        use_unicode=use_unicode,
        initial_tracks=(0,) if default_track else (),
    )
    events = parse_metro_script(text)
    return to_string(events, config)


# =============================================================================
# CLI
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Render metro track events to ASCII/Unicode.')
    parser.add_argument('input', help='Path to event script file')
    parser.add_argument('--unicode', action='store_true', help='Use Unicode line drawing instead of ASCII')
    parser.add_argument('--no-default-track', action='store_true', help='Do not start with track 0')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log every event and track change')
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    with open(args.input, 'r', encoding='utf-8') as f:
        text = f.read()

    try:
        output = render_metro_script(
            text,
            use_unicode=args.unicode,
            default_track=not args.no_default_track,
        )
    except ValueError as e:
        print(f"{args.input}: {e}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
