# -*- coding: utf-8 -*-
"""
sluicewatch/models.py
Occurrence data model and its JSON wire codec.
The canonical keys are the ones written to the cache; the decoder also takes
the legacy backend payload (setor_codigo / timestamp_inicio / ATIVO ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sluicewatch.utils import format_ts, parse_ts

ALL = "ALL"


class Status(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    UNDER_REVIEW = "UNDER_REVIEW"


class OccurrenceType(str, Enum):
    FAULT = "FAULT"
    EVENT = "EVENT"


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# legacy backend codes -> canonical codes
_CODE_ALIASES: Dict[str, str] = {
    "ATIVO": "ACTIVE",
    "RESOLVIDO": "RESOLVED",
    "EM_ANALISE": "UNDER_REVIEW",
    "FALHA": "FAULT",
    "FALHAS": "FAULT",
    "EVENTO": "EVENT",
    "EVENTOS": "EVENT",
    "ALTA": "HIGH",
    "MEDIA": "MEDIUM",
    "BAIXA": "LOW",
}

SECTOR_NAMES: Dict[str, str] = {
    "ENCHIMENTO": "Enchimento",
    "ESVAZIAMENTO": "Esvaziamento",
    "PORTAJUSANTE": "Porta Jusante",
    "PORTAMONTANTE": "Porta Montante",
    "COMANDO_ECLUSA": "Comando Eclusa",
    "ESGOTO_DRENAGEM": "Esgoto Drenagem",
}


def sector_name(code: str) -> str:
    """Human-readable sector name; unknown codes are shown as-is."""
    return SECTOR_NAMES.get(code, code)


def parse_code(enum_cls, value: Any):
    """
    Parse an enum from its string code, accepting the legacy aliases.
    Raises ValueError on anything else.
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise ValueError(f"{enum_cls.__name__}: expected string code, got {value!r}")
    key = value.strip().upper()
    return enum_cls(_CODE_ALIASES.get(key, key))


@dataclass(frozen=True)
class Occurrence:
    # id is unique within one dataset
    id: int

    status: Status
    type: OccurrenceType
    priority: Priority

    description: str
    code: str
    sector_code: str

    start_timestamp: datetime
    # only set once resolved
    end_timestamp: Optional[datetime] = None
    # computed by the server
    duration_seconds: Optional[int] = None

    @property
    def sector_name(self) -> str:
        return sector_name(self.sector_code)


Dataset = Tuple[Occurrence, ...]


# --------- wire codec ---------
# canonical key -> legacy backend key
_KEY_ALIASES: Dict[str, str] = {
    "description": "descricao",
    "code": "codigo",
    "type": "tipo",
    "priority": "prioridade",
    "sectorCode": "setor_codigo",
    "startTimestamp": "timestamp_inicio",
    "endTimestamp": "timestamp_fim",
    "durationSeconds": "duracao_segundos",
}


def _pick(obj: Dict[str, Any], key: str, default: Any = None) -> Any:
    if key in obj:
        return obj[key]
    alias = _KEY_ALIASES.get(key)
    if alias and alias in obj:
        return obj[alias]
    return default


def occurrence_from_wire(obj: Any) -> Occurrence:
    """
    Decode one record. Raises ValueError / KeyError / TypeError on a bad record;
    callers map that to ShapeError or CacheCorruption.
    """
    if not isinstance(obj, dict):
        raise TypeError(f"occurrence must be an object, got {type(obj).__name__}")

    id_ = obj["id"]
    if isinstance(id_, bool) or not isinstance(id_, int):
        raise ValueError(f"occurrence id must be an integer, got {id_!r}")

    start = _pick(obj, "startTimestamp")
    if not start:
        raise ValueError(f"occurrence {id_}: missing startTimestamp")
    end = _pick(obj, "endTimestamp")
    duration = _pick(obj, "durationSeconds")

    return Occurrence(
        id=id_,
        status=parse_code(Status, obj["status"]),
        type=parse_code(OccurrenceType, _pick(obj, "type")),
        priority=parse_code(Priority, _pick(obj, "priority", "MEDIUM")),
        description=str(_pick(obj, "description", "") or ""),
        code=str(_pick(obj, "code", "") or ""),
        sector_code=str(_pick(obj, "sectorCode", "") or ""),
        start_timestamp=parse_ts(start),
        end_timestamp=parse_ts(end) if end else None,
        # the legacy backend sends EXTRACT(EPOCH ...) as a float
        duration_seconds=int(duration) if duration is not None else None,
    )


def occurrence_to_wire(occ: Occurrence) -> Dict[str, Any]:
    return {
        "id": occ.id,
        "status": occ.status.value,
        "type": occ.type.value,
        "priority": occ.priority.value,
        "description": occ.description,
        "code": occ.code,
        "sectorCode": occ.sector_code,
        "startTimestamp": format_ts(occ.start_timestamp),
        "endTimestamp": format_ts(occ.end_timestamp) if occ.end_timestamp else None,
        "durationSeconds": occ.duration_seconds,
    }


# --------- filter criteria ---------
FILTER_FIELDS = ("sector", "type", "status")


@dataclass(frozen=True)
class FilterCriteria:
    """Search text plus three ALL-able selectors. Never persisted."""
    search_text: str = ""
    sector: str = ALL
    type: Any = ALL      # OccurrenceType or ALL
    status: Any = ALL    # Status or ALL

    @property
    def is_default(self) -> bool:
        return self == FilterCriteria()


DEFAULT_CRITERIA = FilterCriteria()


def parse_filter_value(field: str, value: Any) -> Any:
    """Normalise a selector value for one of FILTER_FIELDS."""
    if field not in FILTER_FIELDS:
        raise ValueError(f"unknown filter field: {field!r}")
    if value is None or (isinstance(value, str) and value.strip().upper() in (ALL, "TODOS")):
        return ALL
    if field == "type":
        return parse_code(OccurrenceType, value)
    if field == "status":
        return parse_code(Status, value)
    code = str(value).strip().upper()
    if not code:
        raise ValueError("sector code must not be empty")
    return code
