from __future__ import annotations

import pytest

from ladderwork.doc_ids import (
    day_log_doc_id,
    derive_child_id_from_doc_id,
    legacy_day_log_doc_id,
    parse_date_from_doc_id,
)


def test_canonical_and_legacy_keys() -> None:
    assert day_log_doc_id("2026-02-16", "lincoln") == "2026-02-16_lincoln"
    assert legacy_day_log_doc_id("lincoln", "2026-02-16") == "lincoln_2026-02-16"


@pytest.mark.parametrize(
    ("doc_id", "expected"),
    [
        ("2026-02-16_lincoln", "2026-02-16"),
        ("lincoln_2026-02-16", "2026-02-16"),
        ("2026-02-16", "2026-02-16"),
        ("weird-key", "weird-key"),
        ("", ""),
    ],
)
def test_parse_date_from_doc_id(doc_id: str, expected: str) -> None:
    assert parse_date_from_doc_id(doc_id) == expected


def test_derive_child_id_from_doc_id() -> None:
    assert derive_child_id_from_doc_id("2026-02-16_lincoln") == "lincoln"
    assert derive_child_id_from_doc_id("big_kid_2026-02-16") == "big_kid"
    assert derive_child_id_from_doc_id("2026-02-16") is None
    assert derive_child_id_from_doc_id("no_date_here") is None
