"""pipeline.drift

Clock drift between the qTest server and the Sealights server.

One best-effort sample per server, taken once per export run:

    drift_ms = sealights_time - qtest_time
    adjusted = qtest_timestamp + drift_ms

If either sample is unavailable the drift is 0 (timestamps are exported
unadjusted). Latency asymmetry between the two probes is not corrected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from tools.qtest.api import API_PREFIX, QTestApiError
from tools.qtest.auth import AuthError
from tools.sealights.clock import SealightsClock
from tools.timeutil import http_date_to_ms, iso_to_ms, now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockSample:
    local_time: int
    server_time: Optional[int]

    @property
    def available(self) -> bool:
        return self.server_time is not None


@dataclass(frozen=True)
class DriftEstimate:
    local_time: int
    qtest: ClockSample
    sealights: ClockSample

    @property
    def drift_ms(self) -> int:
        if not (self.qtest.available and self.sealights.available):
            return 0
        return int(self.sealights.server_time - self.qtest.server_time)


def adjust(timestamp_ms: int, drift_ms: int) -> int:
    return timestamp_ms + drift_ms


def adjust_timestamp(qtest_timestamp: str, drift_ms: int) -> int:
    """ISO timestamp reported by qTest -> epoch ms on the Sealights clock."""
    return adjust(iso_to_ms(qtest_timestamp), drift_ms)


def _describe(drift: int, ahead: str, behind: str) -> str:
    if drift > 0:
        return f"({ahead} ahead)"
    if drift < 0:
        return f"({behind} ahead)"
    return "(perfectly synced)"


class ClockDriftEstimator:
    def __init__(self, qtest_client, sealights_clock: SealightsClock, *, clock: Callable[[], int] = now_ms) -> None:
        self._qtest = qtest_client
        self._sealights = sealights_clock
        self._clock = clock

    def qtest_server_time(self) -> Optional[int]:
        try:
            resp = self._qtest.get(f"{API_PREFIX}/projects", {"pageSize": 1})
        except (QTestApiError, AuthError) as e:
            print(f"⚠️  Failed to get qTest server time: {e}")
            return None
        server_time = http_date_to_ms(resp.header("Date"))
        if server_time is None:
            print("⚠️  No Date header in qTest response")
        return server_time

    def sample(self) -> DriftEstimate:
        t0 = self._clock()
        qtest = ClockSample(local_time=t0, server_time=self.qtest_server_time())
        sealights = ClockSample(local_time=t0, server_time=self._sealights.server_time_ms(t0))
        return DriftEstimate(local_time=t0, qtest=qtest, sealights=sealights)

    def estimate_drift(self) -> int:
        print("🕐 Calculating clock drift between qTest and Sealights...")
        est = self.sample()
        if not (est.qtest.available and est.sealights.available):
            print("⚠️  Could not calculate clock drift, using clockDriftMs = 0")
            return 0

        runtime_qtest = est.local_time - est.qtest.server_time
        runtime_sl = est.sealights.local_time - est.sealights.server_time
        print(f"   Integration Runtime time: {est.local_time}")
        print(f"   qTest Server time:        {est.qtest.server_time}")
        print(f"   Sealights Server time:    {est.sealights.server_time}")
        print(f"   → Runtime - qTest drift:      {runtime_qtest}ms {_describe(runtime_qtest, 'Runtime', 'qTest')}")
        print(f"   → Runtime - Sealights drift:  {runtime_sl}ms {_describe(runtime_sl, 'Runtime', 'Sealights')}")
        print(f"   → Final drift (Sealights - qTest): {est.drift_ms}ms {_describe(est.drift_ms, 'Sealights', 'qTest')}")
        return est.drift_ms
