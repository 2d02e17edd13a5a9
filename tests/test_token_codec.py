import json

import pytest

from qr_attendance.errors import InvalidInput
from qr_attendance.modules.token_codec import AttendanceToken, TokenCodec

ISSUED_AT = '2026-10-18T09:00:00.000Z'
KNOWN_FINGERPRINT = '18a7c4108c2bbae139d719af395bab5580a918b5fff2d4e02cb00c36e649a8e7'


def test_compute_matches_sha256_of_joined_fields():
    assert TokenCodec.compute(2, 5, ISSUED_AT) == KNOWN_FINGERPRINT


def test_compute_is_deterministic():
    first = TokenCodec.compute(2, 5, ISSUED_AT)
    second = TokenCodec.compute(2, 5, ISSUED_AT)
    assert first == second
    assert len(first) == 64


def test_integral_float_ids_hash_like_ints():
    assert TokenCodec.compute(2.0, 5.0, ISSUED_AT) == KNOWN_FINGERPRINT


@pytest.mark.parametrize('student_id, session_id, issued_at', [
    (3, 5, ISSUED_AT),
    (2, 6, ISSUED_AT),
    (2, 5, '2026-10-18T09:00:01.000Z'),
])
def test_mutating_any_signed_field_breaks_verification(student_id, session_id, issued_at):
    assert TokenCodec.verify(2, 5, ISSUED_AT, KNOWN_FINGERPRINT)
    assert not TokenCodec.verify(student_id, session_id, issued_at, KNOWN_FINGERPRINT)


def test_verify_is_case_sensitive():
    assert not TokenCodec.verify(2, 5, ISSUED_AT, KNOWN_FINGERPRINT.upper())


def test_verify_rejects_garbage_fingerprints():
    assert not TokenCodec.verify(2, 5, ISSUED_AT, 'deadbeef')
    assert not TokenCodec.verify(2, 5, ISSUED_AT, None)


@pytest.mark.parametrize('student_id, session_id, issued_at', [
    (True, 5, ISSUED_AT),
    (2, float('nan'), ISSUED_AT),
    (float('inf'), 5, ISSUED_AT),
    (2.5, 5, ISSUED_AT),
    ('2', 5, ISSUED_AT),
    (2, 5, 'not-a-timestamp'),
    (2, 5, 1760778000),
])
def test_malformed_input_is_rejected(student_id, session_id, issued_at):
    with pytest.raises(InvalidInput):
        TokenCodec.compute(student_id, session_id, issued_at)


def test_wire_form_keeps_field_order():
    token = AttendanceToken(2, 5, ISSUED_AT, KNOWN_FINGERPRINT)
    assert list(token.to_wire()) == ['studentId', 'sessionId', 'issuedAt', 'fingerprint']
    assert json.loads(token.to_json()) == token.to_wire()


def test_from_payload_parses_wire_form_and_text():
    token = AttendanceToken(2, 5, ISSUED_AT, KNOWN_FINGERPRINT)
    assert AttendanceToken.from_payload(token.to_wire()) == token
    assert AttendanceToken.from_payload(token.to_json()) == token


def test_from_payload_accepts_legacy_field_names():
    payload = {'studentId': 2, 'sessionId': 5, 'timestamp': ISSUED_AT, 'hash': KNOWN_FINGERPRINT}
    token = AttendanceToken.from_payload(payload)
    assert token.issued_at == ISSUED_AT
    assert token.fingerprint == KNOWN_FINGERPRINT


@pytest.mark.parametrize('payload', [
    '{not json',
    [2, 5],
    {'studentId': 2, 'sessionId': 5, 'issuedAt': ISSUED_AT},
    {'studentId': '2', 'sessionId': 5, 'issuedAt': ISSUED_AT, 'fingerprint': 'x'},
    {'studentId': 2, 'sessionId': 5, 'issuedAt': ISSUED_AT, 'fingerprint': 42},
])
def test_from_payload_rejects_malformed_tokens(payload):
    with pytest.raises(InvalidInput):
        AttendanceToken.from_payload(payload)


@pytest.mark.parametrize('student_id, session_id, issued_at', [
    (2 ** 70, 5, ISSUED_AT),
    (2, -2 ** 63 - 1, ISSUED_AT),
    (2.0 ** 64, 5, ISSUED_AT),
    (2, 5, '9999-12-31T23:59:59-14:00'),
    (2, 5, '0001-01-01T00:00:00+14:00'),
])
def test_values_outside_storable_range_are_rejected(student_id, session_id, issued_at):
    with pytest.raises(InvalidInput):
        TokenCodec.compute(student_id, session_id, issued_at)


def test_id_range_edges_are_accepted():
    assert len(TokenCodec.compute(2 ** 63 - 1, -2 ** 63, ISSUED_AT)) == 64
