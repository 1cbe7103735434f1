import contextlib
import io
import unittest

import requests

from pipeline.drift import ClockDriftEstimator, ClockSample, DriftEstimate, adjust, adjust_timestamp
from tools.qtest.api import API_PREFIX, QTestApiError
from tools.qtest.auth import AuthError
from tools.qtest.types import ApiResponse
from tools.sealights.clock import SealightsClock, sync_base_url

LOCAL = 1_700_000_000_000
# "Tue, 14 Nov 2023 22:13:20 GMT" == LOCAL
LOCAL_HTTP_DATE = "Tue, 14 Nov 2023 22:13:20 GMT"


class FakeQTest:
    def __init__(self, date_header=None, fail=False, expired=False):
        self.date_header = date_header
        self.fail = fail
        self.expired = expired
        self.calls = []

    def get(self, path, params=None):
        self.calls.append((path, params))
        if self.fail:
            raise QTestApiError("GET /api/v3/projects failed: timeout")
        if self.expired:
            raise AuthError("qTest authentication failed: connection reset")
        headers = {"date": self.date_header} if self.date_header else {}
        return ApiResponse(status=200, headers=headers, data=[])


class FakeSealightsClock:
    def __init__(self, offset_ms=None):
        self.offset_ms = offset_ms
        self.asked = []

    def server_time_ms(self, local_ms):
        self.asked.append(local_ms)
        return None if self.offset_ms is None else local_ms + self.offset_ms


def _estimate(qtest, sealights):
    estimator = ClockDriftEstimator(qtest, sealights, clock=lambda: LOCAL)
    with contextlib.redirect_stdout(io.StringIO()):
        return estimator.estimate_drift()


class TestDriftEstimate(unittest.TestCase):
    def test_unavailable_qtest_sample_degrades_to_zero(self) -> None:
        self.assertEqual(0, _estimate(FakeQTest(fail=True), FakeSealightsClock(offset_ms=50)))

    def test_qtest_auth_failure_degrades_to_zero(self) -> None:
        self.assertEqual(0, _estimate(FakeQTest(expired=True), FakeSealightsClock(offset_ms=50)))

    def test_unavailable_sealights_sample_degrades_to_zero(self) -> None:
        self.assertEqual(0, _estimate(FakeQTest(date_header=LOCAL_HTTP_DATE), FakeSealightsClock()))

    def test_missing_date_header_degrades_to_zero(self) -> None:
        self.assertEqual(0, _estimate(FakeQTest(), FakeSealightsClock(offset_ms=50)))

    def test_drift_is_sealights_minus_qtest(self) -> None:
        drift = _estimate(FakeQTest(date_header=LOCAL_HTTP_DATE), FakeSealightsClock(offset_ms=1500))
        self.assertEqual(1500, drift)

    def test_both_clock_samples_use_the_same_local_time(self) -> None:
        qtest, sealights = FakeQTest(date_header=LOCAL_HTTP_DATE), FakeSealightsClock(offset_ms=0)
        _estimate(qtest, sealights)

        self.assertEqual([LOCAL], sealights.asked)
        self.assertEqual([(f"{API_PREFIX}/projects", {"pageSize": 1})], qtest.calls)

    def test_estimate_value_object(self) -> None:
        est = DriftEstimate(LOCAL, ClockSample(LOCAL, LOCAL - 200), ClockSample(LOCAL, LOCAL + 300))
        self.assertEqual(500, est.drift_ms)
        est = DriftEstimate(LOCAL, ClockSample(LOCAL, None), ClockSample(LOCAL, LOCAL + 300))
        self.assertEqual(0, est.drift_ms)

    def test_adjust(self) -> None:
        for t in (0, 1, LOCAL, -5):
            self.assertEqual(t, adjust(t, 0))
        self.assertEqual(LOCAL + 250, adjust(LOCAL, 250))
        self.assertEqual(1704067200000 - 100, adjust_timestamp("2024-01-01T00:00:00Z", -100))
        self.assertEqual(1704067200000, adjust_timestamp("2024-01-01T01:00:00+01:00", 0))


class FakeResponse:
    def __init__(self, payload=None, headers=None, status=200):
        self._payload = payload
        self.headers = headers or {}
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params, headers))
        if self.error is not None:
            raise self.error
        return self.response


class TestSealightsClock(unittest.TestCase):
    def _server_time(self, session, token=None):
        clock = SealightsClock("https://acme.sealights.co/api", token, session=session)
        with contextlib.redirect_stdout(io.StringIO()):
            return clock.server_time_ms(LOCAL)

    def test_sync_url_drops_api_suffix(self) -> None:
        self.assertEqual("https://acme.sealights.co", sync_base_url("https://acme.sealights.co/api/"))
        self.assertEqual("https://acme.sealights.co", sync_base_url("https://acme.sealights.co"))

    def test_drift_in_body_is_preferred(self) -> None:
        session = FakeSession(FakeResponse({"data": {"slDriftMs": 40, "slServerTime": 1}}, {"Date": LOCAL_HTTP_DATE}))
        self.assertEqual(LOCAL - 40, self._server_time(session, token="tok"))

        url, params, headers = session.calls[0]
        self.assertEqual("https://acme.sealights.co/clock/sync", url)
        self.assertEqual({"time": LOCAL}, params)
        self.assertEqual("Bearer tok", headers["Authorization"])

    def test_server_time_in_body_is_second(self) -> None:
        session = FakeSession(FakeResponse({"data": {"slServerTime": LOCAL + 9}}, {"Date": LOCAL_HTTP_DATE}))
        self.assertEqual(LOCAL + 9, self._server_time(session))

    def test_date_header_is_last(self) -> None:
        session = FakeSession(FakeResponse({"data": {}}, {"Date": LOCAL_HTTP_DATE}))
        self.assertEqual(LOCAL, self._server_time(session))

    def test_nothing_usable(self) -> None:
        self.assertIsNone(self._server_time(FakeSession(FakeResponse(None, {}))))

    def test_network_failure(self) -> None:
        self.assertIsNone(self._server_time(FakeSession(error=requests.ConnectionError("refused"))))

    def test_http_error(self) -> None:
        self.assertIsNone(self._server_time(FakeSession(FakeResponse({"data": {"slDriftMs": 1}}, status=503))))

    def test_not_configured(self) -> None:
        session = FakeSession(FakeResponse({"data": {"slDriftMs": 1}}))
        clock = SealightsClock(None, session=session)

        self.assertFalse(clock.configured)
        self.assertIsNone(clock.server_time_ms(LOCAL))
        self.assertEqual([], session.calls)


if __name__ == "__main__":
    unittest.main()
