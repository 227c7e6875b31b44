#!/usr/bin/env python3
"""
Persisted record of the last applied configuration.
"""
import json
import os
import tempfile
from pathlib import Path

from .errors import SiteStackError


STATE_VERSION = 1
DEFAULT_STATE_FILE = "sitestack.state.json"


def empty_state():
    """A record with nothing applied yet."""
    return {"version": STATE_VERSION, "serial": 0, "resources": {}, "outputs": {}}


class StateFile:
    """A JSON state record on the local filesystem."""

    def __init__(self, path=DEFAULT_STATE_FILE):
        self.path = Path(path)

    def load(self):
        """Read the record, or an empty one if the file does not exist."""
        if not self.path.exists():
            return empty_state()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise SiteStackError(f"Corrupted state file `{self.path}`: {error}") from error
        if data.get("version") != STATE_VERSION:
            raise SiteStackError(
                f"Unsupported state version in `{self.path}`: {data.get('version')}"
            )
        return data

    def save(self, state):
        """Write the record atomically and bump its serial."""
        state["serial"] = state.get("serial", 0) + 1
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fobj:
                json.dump(state, fobj, indent=2, sort_keys=True)
                fobj.write("\n")
            os.replace(tmp_name, self.path)
        except OSError:
            os.unlink(tmp_name)
            raise
        return state
