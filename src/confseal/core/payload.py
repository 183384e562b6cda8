"""
Export payloads: the typed form of what gets sealed.

Records are read from a plain JSON record file with the keys ``vodSources``,
``shortsSources`` and ``dailymotionChannels``. An export selects one kind (or
``all``) and stamps the time in epoch milliseconds.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import EmptyExportError, PayloadError


class ExportKind(Enum):
    # Which record lists go into an export
    VOD = "vod"
    SHORTS = "shorts"
    DAILYMOTION = "dailymotion"
    ALL = "all"


# record-file key for each single kind
_LIST_KEYS = {
    ExportKind.VOD: "vodSources",
    ExportKind.SHORTS: "shortsSources",
    ExportKind.DAILYMOTION: "dailymotionChannels",
}

_EMPTY_MESSAGES = {
    ExportKind.VOD: "no VOD sources to export",
    ExportKind.SHORTS: "no shorts sources to export",
    ExportKind.DAILYMOTION: "no Dailymotion channels to export",
    ExportKind.ALL: "no configuration to export",
}


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ExportPayload:
    """One configuration export, tagged by its kind."""

    kind: ExportKind
    vod_sources: List[Dict[str, Any]] = field(default_factory=list)
    shorts_sources: List[Dict[str, Any]] = field(default_factory=list)
    dailymotion_channels: List[Dict[str, Any]] = field(default_factory=list)
    timestamp: int = field(default_factory=_now_ms)

    def _lists(self):
        return {
            ExportKind.VOD: self.vod_sources,
            ExportKind.SHORTS: self.shorts_sources,
            ExportKind.DAILYMOTION: self.dailymotion_channels,
        }

    def included_kinds(self) -> List[ExportKind]:
        if self.kind is ExportKind.ALL:
            return [ExportKind.VOD, ExportKind.SHORTS, ExportKind.DAILYMOTION]
        return [self.kind]

    def to_dict(self) -> Dict[str, Any]:
        """Wire form; only the lists selected by ``kind`` are present."""
        out: Dict[str, Any] = {"timestamp": self.timestamp, "type": self.kind.value}
        lists = self._lists()
        for kind in self.included_kinds():
            out[_LIST_KEYS[kind]] = lists[kind]
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportPayload":
        if not isinstance(data, dict):
            raise PayloadError("export payload must be a JSON object")
        try:
            kind = ExportKind(data.get("type"))
        except ValueError:
            raise PayloadError(f"unknown export type: {data.get('type')!r}") from None
        try:
            return cls(
                kind=kind,
                vod_sources=list(data.get("vodSources") or []),
                shorts_sources=list(data.get("shortsSources") or []),
                dailymotion_channels=list(data.get("dailymotionChannels") or []),
                timestamp=int(data.get("timestamp") or 0),
            )
        except (TypeError, ValueError) as e:
            raise PayloadError(f"malformed export payload: {e}") from e

    def counts(self) -> Dict[str, int]:
        """Number of entries per included list, keyed by wire name."""
        lists = self._lists()
        return {_LIST_KEYS[kind]: len(lists[kind]) for kind in self.included_kinds()}


def build_export_payload(
    records: Dict[str, Any],
    kind: ExportKind | str = ExportKind.ALL,
    timestamp: Optional[int] = None,
) -> ExportPayload:
    """Select the record lists for ``kind`` out of a record mapping."""
    if not isinstance(kind, ExportKind):
        try:
            kind = ExportKind(kind)
        except ValueError:
            raise PayloadError(f"unknown export type: {kind!r}") from None

    payload = ExportPayload(
        kind=kind,
        vod_sources=list(records.get("vodSources") or []),
        shorts_sources=list(records.get("shortsSources") or []),
        dailymotion_channels=list(records.get("dailymotionChannels") or []),
    )
    if timestamp is not None:
        payload.timestamp = timestamp
    return payload


def validate_export_payload(payload: ExportPayload) -> None:
    """Raise :class:`EmptyExportError` if the selected kind has nothing to export."""
    lists = payload._lists()
    if not any(lists[kind] for kind in payload.included_kinds()):
        raise EmptyExportError(_EMPTY_MESSAGES[payload.kind])


def load_records(path: str | Path) -> Dict[str, Any]:
    """Read a record file and return its mapping."""
    path = Path(path).expanduser()
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except OSError as e:
        raise PayloadError(f"cannot read record file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PayloadError(f"record file {path} is not valid JSON: {e}") from e

    if not isinstance(records, dict):
        raise PayloadError(f"record file {path} must contain a JSON object")
    for key in _LIST_KEYS.values():
        value = records.get(key)
        if value is not None and not isinstance(value, list):
            raise PayloadError(f"{key} in {path} must be a list")
    return records
