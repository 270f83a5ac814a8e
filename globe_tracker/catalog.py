import logging
import threading
from dataclasses import dataclass, field
from typing import Any, List

from globe_tracker.propagator import GeodeticPosition, OrbitalPropagator
from globe_tracker.time_controller import wall_clock_ms

logger = logging.getLogger(__name__)

PALETTE = (
    "#ff6b6b", "#ffd93d", "#6bcb77", "#4d96ff",
    "#c77dff", "#ff9f1c", "#2ec4b6", "#f15bb5",
)


@dataclass(frozen=True)
class OrbitalElementRecord:
    norad_id: int
    name: str
    line1: str
    line2: str
    display_color: str
    satellite: Any = field(compare=False, repr=False)


@dataclass(frozen=True)
class SatelliteState:
    record: OrbitalElementRecord
    position: GeodeticPosition

    @property
    def lat(self):
        return self.position.lat

    @property
    def lng(self):
        return self.position.lng

    @property
    def altitude_ratio(self):
        return self.position.altitude_ratio

    def as_dict(self):
        return {
            "id": self.record.norad_id,
            "name": self.record.name,
            "lat": self.lat,
            "lng": self.lng,
            "alt": self.altitude_ratio,
            "color": self.record.display_color,
        }


class SatelliteCatalog:
    """
    Satellites known to the globe, plus which of them the user wants drawn.

    The record map is built once per ingestion and swapped in whole. Only
    records that produced a valid position at ingestion time ever make it in,
    so nothing unpropagatable can be selected. The filter text narrows the
    candidate list offered for selection and never touches the selection.

    ``lock`` guards the records and the selection. Ingestion takes it for the
    swap; every other caller is expected to hold it already (the simulation
    shares it with the frame loop and the HTTP handlers).
    """

    def __init__(self, propagator=None, lock=None):
        self.propagator = propagator or OrbitalPropagator()
        self.lock = lock if lock is not None else threading.Lock()
        self._records = {}  # norad_id -> OrbitalElementRecord
        self._selected = set()
        self.filter_text = ""

    def __len__(self):
        return len(self._records)

    def __contains__(self, norad_id):
        return norad_id in self._records

    @property
    def records(self) -> List[OrbitalElementRecord]:
        return list(self._records.values())

    @property
    def selected(self):
        return frozenset(self._selected)

    def get(self, norad_id):
        return self._records.get(norad_id)

    # --- Ingestion ---

    def ingest(self, tles, now_ms):
        records = {}
        dropped = 0

        for name, line1, line2 in tles:
            try:
                satellite = self.propagator.seed(name, line1, line2)
            except ValueError as e:
                logger.debug("Dropping %r: unparseable elements (%s)", name, e)
                dropped += 1
                continue

            if self.propagator.position(satellite, now_ms) is None:
                logger.debug("Dropping %r: no valid position at ingestion", name)
                dropped += 1
                continue

            norad_id = int(satellite.model.satnum)
            records[norad_id] = OrbitalElementRecord(
                norad_id=norad_id,
                name=name,
                line1=line1,
                line2=line2,
                display_color=PALETTE[len(records) % len(PALETTE)],
                satellite=satellite,
            )

        # seeding above runs unlocked; only the swap waits for the frame loop
        with self.lock:
            self._records = records
            self._selected = {i for i in self._selected if i in records}
        logger.info("Catalog holds %d satellites (%d dropped)", len(records), dropped)
        return len(records)

    def load_async(self, executor, fetch, clock=wall_clock_ms):
        """Fetch and ingest on ``executor``; the catalog stays empty until it finishes."""
        def job():
            tles = fetch()
            return self.ingest(tles, clock())
        return executor.submit(job)

    # --- Filtering ---

    def set_filter(self, filter_text):
        self.filter_text = filter_text or ""

    def candidates(self, filter_text=None):
        text = self.filter_text if filter_text is None else filter_text
        needle = text.casefold()
        return [r for r in self._records.values() if needle in r.name.casefold()]

    # --- Selection ---

    def is_selected(self, norad_id):
        return norad_id in self._selected

    def toggle(self, norad_id):
        """Flip one satellite's selection. Returns whether it is now selected."""
        if norad_id not in self._records:
            return False
        if norad_id in self._selected:
            self._selected.discard(norad_id)
            return False
        self._selected.add(norad_id)
        return True

    def select(self, norad_ids):
        known = {i for i in norad_ids if i in self._records}
        self._selected |= known
        return len(known)

    def select_all(self, filter_text=None):
        self._selected.update(r.norad_id for r in self.candidates(filter_text))
        return len(self._selected)

    def deselect_all(self):
        self._selected.clear()

    # --- Per-frame projection ---

    def project(self, t_ms) -> List[SatelliteState]:
        """Fresh positions of the selected satellites at ``t_ms``.

        A satellite whose propagation fails this frame is left out; it is
        tried again next frame.
        """
        records = self._records
        states = []
        for norad_id in sorted(self._selected):
            record = records.get(norad_id)
            if record is None:
                continue
            position = self.propagator.position(record.satellite, t_ms)
            if position is None or not position.is_finite:
                continue
            states.append(SatelliteState(record, position))
        return states
