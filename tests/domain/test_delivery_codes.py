"""Unit tests for issuing and checking delivery proof codes."""

import pytest

from olm.domain.exceptions import ProofInvalidError, ValidationError
from olm.domain.service.delivery_codes import DeliveryCodeService
from tests.fakes import FakeDeliveryCodeStore, FixedClock


def _service(**kwargs):
    clock = FixedClock()
    store = FakeDeliveryCodeStore(clock)
    return DeliveryCodeService(store, clock=clock, **kwargs), store, clock


class TestIssue:

    def test_code_is_numeric_with_configured_length(self):
        svc, _, _ = _service(length=6)
        code = svc.issue("o-1")
        assert len(code) == 6
        assert code.isdigit()

    def test_reissue_replaces_previous_code(self):
        svc, store, _ = _service()
        svc.issue("o-1")
        second = svc.issue("o-1")
        assert store.get("o-1").code == second

    def test_short_codes_refused(self):
        with pytest.raises(ValidationError, match="at least 4 digits"):
            _service(length=3)


class TestCheck:

    def test_match_keeps_code_until_consumed(self):
        svc, store, _ = _service()
        code = svc.issue("o-1")
        svc.check("o-1", code)
        assert store.get("o-1").code == code
        svc.check("o-1", code)

        svc.consume("o-1")
        assert store.get("o-1") is None
        with pytest.raises(ProofInvalidError, match="No valid delivery code"):
            svc.check("o-1", code)

    def test_missing_proof(self):
        svc, _, _ = _service()
        svc.issue("o-1")
        with pytest.raises(ProofInvalidError, match="required"):
            svc.check("o-1", None)

    def test_wrong_code_counts_attempts(self):
        svc, store, _ = _service(max_attempts=3)
        code = svc.issue("o-1")
        wrong = "0000" if code != "0000" else "1111"
        with pytest.raises(ProofInvalidError, match="2 attempts remaining"):
            svc.check("o-1", wrong)
        with pytest.raises(ProofInvalidError, match="1 attempt remaining"):
            svc.check("o-1", wrong)
        assert store.get("o-1").attempts == 2
        # The right code still works before the limit.
        svc.check("o-1", code)

    def test_code_burned_after_max_attempts(self):
        svc, store, _ = _service(max_attempts=2)
        code = svc.issue("o-1")
        wrong = "0000" if code != "0000" else "1111"
        with pytest.raises(ProofInvalidError):
            svc.check("o-1", wrong)
        with pytest.raises(ProofInvalidError, match="No attempts left"):
            svc.check("o-1", wrong)
        assert store.get("o-1") is None
        with pytest.raises(ProofInvalidError):
            svc.check("o-1", code)

    def test_expired_code_rejected(self):
        svc, _, clock = _service(ttl_seconds=60)
        code = svc.issue("o-1")
        clock.advance(seconds=61)
        with pytest.raises(ProofInvalidError, match="No valid delivery code"):
            svc.check("o-1", code)

    def test_code_for_other_order_rejected(self):
        svc, _, _ = _service()
        code = svc.issue("o-1")
        with pytest.raises(ProofInvalidError):
            svc.check("o-2", code)
