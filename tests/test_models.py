# -*- coding: utf-8 -*-
"""Occurrence wire codec and filter-value parsing."""

import datetime

import pytest

from sluicewatch.models import (
    ALL,
    FilterCriteria,
    OccurrenceType,
    Priority,
    Status,
    occurrence_from_wire,
    occurrence_to_wire,
    parse_filter_value,
    sector_name,
)

CANONICAL = {
    "id": 7,
    "status": "RESOLVED",
    "type": "FAULT",
    "priority": "HIGH",
    "description": "Bomba 1 sem resposta",
    "code": "ENC-07",
    "sectorCode": "ENCHIMENTO",
    "startTimestamp": "2025-03-01T12:00:00+00:00",
    "endTimestamp": "2025-03-01T12:30:00+00:00",
    "durationSeconds": 1800,
}

LEGACY = {
    "id": 7,
    "status": "RESOLVIDO",
    "tipo": "FALHA",
    "prioridade": "ALTA",
    "descricao": "Bomba 1 sem resposta",
    "codigo": "ENC-07",
    "setor_codigo": "ENCHIMENTO",
    "setor_nome": "Enchimento",
    "timestamp_inicio": "2025-03-01T12:00:00.123456789Z",
    "timestamp_fim": "2025-03-01T12:30:00Z",
    "duracao_segundos": 1800.4,
    "word_index": 3,
    "bit_index": 1,
}


def test_canonical_record_decodes():
    occ = occurrence_from_wire(CANONICAL)

    assert occ.id == 7
    assert occ.status is Status.RESOLVED
    assert occ.type is OccurrenceType.FAULT
    assert occ.priority is Priority.HIGH
    assert occ.sector_name == "Enchimento"
    assert occ.start_timestamp == datetime.datetime(2025, 3, 1, 12, 0, tzinfo=datetime.timezone.utc)
    assert occ.duration_seconds == 1800


def test_encode_then_decode_is_identity():
    occ = occurrence_from_wire(CANONICAL)
    assert occurrence_from_wire(occurrence_to_wire(occ)) == occ


def test_legacy_backend_payload_decodes_to_same_codes():
    occ = occurrence_from_wire(LEGACY)

    assert occ.status is Status.RESOLVED
    assert occ.type is OccurrenceType.FAULT
    assert occ.priority is Priority.HIGH
    assert occ.code == "ENC-07"
    # nanoseconds truncated to microseconds
    assert occ.start_timestamp.microsecond == 123456
    assert occ.end_timestamp == datetime.datetime(2025, 3, 1, 12, 30, tzinfo=datetime.timezone.utc)
    assert occ.duration_seconds == 1800


def test_optional_fields_may_be_missing():
    raw = dict(CANONICAL)
    del raw["endTimestamp"]
    del raw["durationSeconds"]

    occ = occurrence_from_wire(raw)

    assert occ.end_timestamp is None
    assert occ.duration_seconds is None
    assert occurrence_to_wire(occ)["endTimestamp"] is None


def test_short_fraction_and_offset_timestamps():
    raw = dict(CANONICAL, startTimestamp="2025-03-01T09:00:00.5-03:00")
    occ = occurrence_from_wire(raw)
    assert occ.start_timestamp == datetime.datetime(2025, 3, 1, 12, 0, 0, 500000, tzinfo=datetime.timezone.utc)


@pytest.mark.parametrize(
    "patch",
    [
        {"id": "7"},
        {"id": True},
        {"status": "BROKEN"},
        {"type": 3},
        {"startTimestamp": None},
        {"startTimestamp": "yesterday"},
    ],
)
def test_bad_records_raise(patch):
    raw = dict(CANONICAL, **patch)
    with pytest.raises((ValueError, TypeError, KeyError)):
        occurrence_from_wire(raw)


def test_non_object_record_raises():
    with pytest.raises(TypeError):
        occurrence_from_wire(["not", "a", "record"])


def test_unknown_sector_is_shown_as_code():
    assert sector_name("PORTAMONTANTE") == "Porta Montante"
    assert sector_name("CASA_FORCA") == "CASA_FORCA"


def test_parse_filter_value():
    assert parse_filter_value("type", "FAULT") is OccurrenceType.FAULT
    assert parse_filter_value("type", "EVENTOS") is OccurrenceType.EVENT
    assert parse_filter_value("status", "em_analise") is Status.UNDER_REVIEW
    assert parse_filter_value("sector", "enchimento") == "ENCHIMENTO"
    assert parse_filter_value("sector", "TODOS") == ALL
    assert parse_filter_value("status", None) == ALL

    with pytest.raises(ValueError):
        parse_filter_value("priority", "HIGH")
    with pytest.raises(ValueError):
        parse_filter_value("status", "CLOSED")


def test_default_criteria():
    assert FilterCriteria().is_default
    assert not FilterCriteria(search_text="bomba").is_default
