"""Unit tests for drawing-session and local design identifiers."""

import re

from devsketch.domain.entities import (
    Design,
    is_local_design_id,
    local_design_id,
    new_session_id,
)

UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def test_session_ids_are_canonical_uuid4():
    samples = [new_session_id() for _ in range(1000)]

    assert all(UUID4_PATTERN.match(sample) for sample in samples)
    assert len(set(samples)) == len(samples)


def test_local_design_id_round_trip():
    session_id = new_session_id()
    design_id = local_design_id(session_id)

    assert design_id == f"local-{session_id}"
    assert is_local_design_id(design_id)
    assert Design(id=design_id, session_id=session_id).is_local


def test_remote_ids_are_not_local():
    assert not is_local_design_id(new_session_id())
    assert not is_local_design_id(None)
    assert not is_local_design_id("")
