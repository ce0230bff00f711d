# -*- coding: utf-8 -*-
"""
sluicewatch/filters.py
Derived view: dataset -> filtered list -> one page.
Both steps are pure and keep the server order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from sluicewatch.models import ALL, FilterCriteria, Occurrence
from sluicewatch.utils import norm_text_for_match

PAGE_SIZE = 10


def matches_search(occ: Occurrence, needle: str) -> bool:
    """needle must already be lower-cased."""
    return (
        needle in norm_text_for_match(occ.description)
        or needle in norm_text_for_match(occ.sector_name)
        or needle in norm_text_for_match(occ.code)
    )


def apply_filters(dataset: Iterable[Occurrence], criteria: FilterCriteria) -> List[Occurrence]:
    needle = norm_text_for_match(criteria.search_text)
    out: List[Occurrence] = []
    for occ in dataset:
        if needle and not matches_search(occ, needle):
            continue
        if criteria.sector != ALL and occ.sector_code != criteria.sector:
            continue
        if criteria.type != ALL and occ.type != criteria.type:
            continue
        if criteria.status != ALL and occ.status != criteria.status:
            continue
        out.append(occ)
    return out


@dataclass(frozen=True)
class Page:
    items: Tuple[Occurrence, ...]
    page: int
    total_pages: int
    total: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def clamp_page(page_number: int, pages: int) -> int:
    return min(max(1, page_number), pages)


def paginate(filtered: Sequence[Occurrence], page_size: int = PAGE_SIZE, page_number: int = 1) -> Page:
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    pages = total_pages(len(filtered), page_size)
    page = clamp_page(page_number, pages)
    start = (page - 1) * page_size
    return Page(
        items=tuple(filtered[start:start + page_size]),
        page=page,
        total_pages=pages,
        total=len(filtered),
    )
