"""pipeline.wiring

This module is the **composition root**.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load configuration (file + environment / ``.env``)
- build the qTest transport and auth, the tree readers and the status applier
- resolve the Sealights backend used for clock sync
- build the high-level pipeline facade object

Keeping this wiring in one place prevents configuration and dependency setup
from being duplicated across entrypoints (CLI, scripts, tests).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import requests

from pipeline.config import AppConfig, load_config
from pipeline.hierarchy import DesignTreeReader, ExecutionTreeReader
from pipeline.orchestrator import Services
from pipeline.pipeline import QTestSyncPipeline
from pipeline.status import StatusApplier, StatusContext
from tools.qtest.api import QTestClient
from tools.qtest.auth import QTestAuth
from tools.sealights.clock import SealightsClock
from tools.sealights.token import resolve_backend_url


def build_services(config: AppConfig, *, session: Optional[requests.Session] = None) -> Services:
    session = session or requests.Session()
    auth = QTestAuth(config.qtest_url, config.auth, session=session)
    client = QTestClient(config.qtest_url, auth, session=session)
    backend_url = resolve_backend_url(config.sealights.token, config.sealights.backend_url)
    return Services(
        config=config,
        client=client,
        execution=ExecutionTreeReader(client),
        design=DesignTreeReader(client),
        status=StatusApplier(client, StatusContext()),
        sealights_clock=SealightsClock(backend_url, config.sealights.token, session=session),
    )


def build_pipeline(
    config_path: Optional[Path] = None,
    *,
    output_dir: Path = Path("output"),
    config: Optional[AppConfig] = None,
) -> QTestSyncPipeline:
    """Build the high-level pipeline facade.

    Pass ``config`` to skip file/env loading (tests, scripts).
    """
    if config is None:
        print("📋 Loading configuration...")
        config = load_config(config_path)
    print("🔐 Initializing qTest client...")
    return QTestSyncPipeline(build_services(config), output_dir=output_dir)
