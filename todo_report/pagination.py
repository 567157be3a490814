"""Helpers for estimating how many pages a report table needs."""

from __future__ import annotations

from .layout import BODY_ROW_H, HEAD_ROW_H, TABLE_BOTTOM_CONT, TABLE_BOTTOM_FIRST, TABLE_Y_CONT, TABLE_Y_FIRST

# Capacities assume single-line rows; wrapped text only lowers them.
FIRST_PAGE_CAPACITY = int((TABLE_BOTTOM_FIRST - TABLE_Y_FIRST - HEAD_ROW_H) // BODY_ROW_H)
CONT_PAGE_CAPACITY = int((TABLE_BOTTOM_CONT - TABLE_Y_CONT - HEAD_ROW_H) // BODY_ROW_H)


def estimate_page_count(item_count: int) -> int:
    if item_count <= FIRST_PAGE_CAPACITY:
        return 1
    remaining = item_count - FIRST_PAGE_CAPACITY
    return 1 + (remaining + CONT_PAGE_CAPACITY - 1) // CONT_PAGE_CAPACITY


def max_items_for_pages(page_count: int) -> int:
    if page_count <= 1:
        return FIRST_PAGE_CAPACITY
    return FIRST_PAGE_CAPACITY + CONT_PAGE_CAPACITY * (page_count - 1)
