from __future__ import annotations

import json
import re

from govguard.services.security.identity import (
    control_check_id,
    deterministic_id,
    rolling_hash,
    threat_item_id,
)


_ID_SHAPE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[ab][0-9a-f]{3}-[0-9a-f]{12}$")


def _reference_hash(raw: str) -> int:
    # Closed form of the rolling hash: sum(unit * 31^(n-1-i)) reduced to signed 32 bits.
    units = [ord(ch) for ch in raw]
    total = sum(unit * pow(31, len(units) - 1 - i, 2**32) for i, unit in enumerate(units)) % 2**32
    return total - 2**32 if total >= 2**31 else total


def test_rolling_hash_small_inputs() -> None:
    assert rolling_hash("") == 0
    assert rolling_hash("a") == 97
    assert rolling_hash("ab") == 97 * 31 + 98


def test_rolling_hash_wraps_to_signed_32_bits() -> None:
    raw = "project-with-a-rather-long-identifier:AUTH-001"
    value = rolling_hash(raw)
    assert -(2**31) <= value < 2**31
    assert value == _reference_hash(raw)


def test_rolling_hash_uses_utf16_code_units() -> None:
    # An astral character hashes as its surrogate pair.
    assert rolling_hash("\U0001F600") == 0xD83D * 31 + 0xDE00


def test_deterministic_id_layout() -> None:
    assert deterministic_id("a", variant="a") == "00000061-0000-4000-a000-000000610000"


def test_deterministic_id_is_repeatable() -> None:
    first = control_check_id("AUTH-001", "proj-x")
    second = control_check_id("AUTH-001", "proj-x")
    assert first == second
    assert _ID_SHAPE.match(first)
    assert first.split("-")[3].startswith("a")


def test_ids_differ_by_project_and_kind() -> None:
    assert control_check_id("AUTH-001", "proj-x") != control_check_id("AUTH-001", "proj-y")
    threat_id = threat_item_id("proj-x", "prompt_injection", 0)
    assert _ID_SHAPE.match(threat_id)
    assert threat_id.split("-")[3].startswith("b")
    assert threat_id != threat_item_id("proj-x", "prompt_injection", 1)


def test_control_ids_match_published_vectors() -> None:
    # Values produced by the dashboard's id generator; stored rows rely on them.
    assert control_check_id("AUTH-001", "proj-x") == "494319be-4943-4943-a943-494319be0000"
    # Negative hash, rendered through its absolute value.
    assert rolling_hash("project-with-a-rather-long-identifier:AUTH-001") < 0
    assert (
        control_check_id("AUTH-001", "project-with-a-rather-long-identifier")
        == "649ee1b6-649e-449e-a49e-649ee1b60000"
    )


def test_threat_ids_match_published_vectors() -> None:
    assert threat_item_id("proj-x", "prompt_injection", 0) == "05eb6660-05eb-45eb-b5eb-05eb66600000"


def test_lone_surrogate_hashes_as_single_unit() -> None:
    # json.loads can hand back a str holding an unpaired surrogate.
    project_id = json.loads('"proj-\\ud800"')
    assert control_check_id("AUTH-001", project_id) == "41b7c4ca-41b7-41b7-a1b7-41b7c4ca0000"
