import logging
import os
import time

import requests

logger = logging.getLogger(__name__)

ELEMENT_LINE_PREFIXES = ("1 ", "2 ")


def _is_element_line(line):
    return line.startswith(ELEMENT_LINE_PREFIXES)


def parse_tle(tle_data):
    """
    Split element-set text into (name, line1, line2) tuples.

    Any line that is not an element line starts a new record and names it;
    a leading "0 " (3LE style) is stripped. A "1" line arriving after a record
    already has element lines starts an unnamed record, so plain two-line
    feeds work too. Records that do not end up as exactly one "1" line
    followed by one "2" line are dropped.
    """
    records = []
    name = None
    lines = []

    def flush():
        if name is None and not lines:
            return
        if len(lines) == 2 and lines[0].startswith("1 ") and lines[1].startswith("2 "):
            records.append((name or lines[0][2:7].strip(), lines[0], lines[1]))
        else:
            logger.debug("Dropping malformed element record %r", name)

    for raw in tle_data.splitlines():
        line = raw.strip()
        if not line:
            continue

        if not _is_element_line(line):
            flush()
            name = line[2:].strip() if line.startswith("0 ") else line
            lines = []
        elif line.startswith("1 ") and lines:
            flush()
            name = None
            lines = [line]
        else:
            lines.append(line)

    flush()
    return records


class TLEManager:
    CELESTRAK_URL = "https://celestrak.org/NORAD/elements/gp.php?GROUP={group}&FORMAT=tle"

    def __init__(self, cache_dir="./tle_cache", max_age_hours=24, timeout=10):
        self.cache_dir = cache_dir
        self.max_age_s = max_age_hours * 3600
        self.timeout = timeout
        os.makedirs(self.cache_dir, exist_ok=True)

    def _cache_file(self, group):
        return os.path.join(self.cache_dir, f"{group}.txt")

    def _get_tle_from_cache(self, group, allow_stale=False):
        cache_file = self._cache_file(group)
        if not os.path.exists(cache_file):
            return None

        age = time.time() - os.path.getmtime(cache_file)
        if age < self.max_age_s:
            logger.info("Found fresh data for '%s' (age %.1fh)", group, age / 3600)
        elif allow_stale:
            logger.warning("Using stale data for '%s' (age %.1fh)", group, age / 3600)
        else:
            logger.info("Expired data for '%s' (age %.1fh), reloading", group, age / 3600)
            return None

        with open(cache_file, "r") as f:
            return f.read()

    def _save_tle_to_cache(self, group, data):
        with open(self._cache_file(group), "w") as f:
            f.write(data)

    def _download(self, url):
        logger.info("Downloading %s", url)
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Error downloading %s: %s", url, e)
            return None
        logger.info("Download successful (%d bytes)", len(response.text))
        return response.text

    def load_group(self, group, url=None):
        """Element sets for one Celestrak group, or for an explicit URL cached under ``group``."""
        tle_data = self._get_tle_from_cache(group)

        if not tle_data:
            tle_data = self._download(url or self.CELESTRAK_URL.format(group=group))
            if tle_data:
                self._save_tle_to_cache(group, tle_data)
            else:
                tle_data = self._get_tle_from_cache(group, allow_stale=True)

        if not tle_data:
            return []
        return parse_tle(tle_data)

    def load_groups(self, groups_str):
        all_tles = []
        for group in (g.strip() for g in groups_str.split(",")):
            if group:
                all_tles.extend(self.load_group(group))
        return all_tles
