"""cli.common

Prompts shared by the bulk-import and recommend modes.

Each helper resolves one input the flows need (skip status, user/lab, test
stage, recommendations) and fails with a fatal error when the configuration
cannot provide it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from cli.ui import _prompt_text, select_from_list
from pipeline.config import AppConfig, ConfigError, save_skip_status_name, save_test_stage_mapping
from pipeline.models import PATH_SEPARATOR
from pipeline.status import QTestStatus, StatusApplier
from tools.sealights.recommendations import Recommendations, load_recommendations


def resolve_skip_status(applier: StatusApplier, project_id: int, config: AppConfig) -> QTestStatus:
    """The configured skip status, or one picked by the user (then saved to config)."""
    wanted = config.recommendations.skip_status_name
    print("\n🔍 Validating qTest status configuration...")
    status = applier.find_status_by_name(project_id, wanted)
    if status is not None:
        print(f"✅ Found status \"{status.name}\" (ID: {status.id})")
        return status

    print(f"❌ Status \"{wanted}\" not found in project.")
    statuses = applier.available_statuses(project_id)
    if not statuses:
        raise ConfigError("No test run statuses found in project")
    status = select_from_list("\nAvailable test run statuses:", statuses, lambda s, i: f"{i}. {s.name}")

    if config.source_path is not None:
        print(f"\n✅ Selected \"{status.name}\" - saving to {config.source_path.name} for future use.")
        try:
            save_skip_status_name(config.source_path, status.name)
        except (ConfigError, OSError) as e:
            print(f"⚠️  Failed to update {config.source_path}: {e}")
            print(f"   Please set recommendations.skipStatusName to \"{status.name}\" manually.")
    print("⚠️  RECOMMENDATION: Create a dedicated \"SL Skipped\" status in qTest and map it to PASS")
    print("   in Automation Settings to prevent repeated recommendations.\n")
    return status


def select_user(config: AppConfig) -> Tuple[str, Optional[str]]:
    """Return ``(email, lab_id)``; the logged-in user is offered first."""
    mapping = config.user_lab_mapping
    current = config.auth.username
    options = []
    if current:
        options.append(("current", current, mapping.get(current)))
    options.extend(("mapped", email, lab) for email, lab in mapping.items() if email != current)
    if not options:
        raise ConfigError("No users configured. Please add userLabMapping to config.json")

    def _label(opt, i: int) -> str:
        kind, email, lab = opt
        lab_note = f" - lab: {lab}" if lab else ""
        if kind == "current":
            return f"{i}. Current user ({email}){lab_note}"
        return f"{i}. {email}{lab_note}"

    _, email, lab = select_from_list("👤 Who are these tests for?", options, _label)
    print(f"\n✅ Selected user: {email}")
    if lab:
        print(f"   Lab ID: {lab}")
    return email, lab


def select_test_stage(path: Tuple[str, ...], config: AppConfig) -> str:
    """Stage of the suite at ``path``: mapped (full, then ``project / suite``), created, or the path."""
    mapping = config.test_stage_mapping
    full = PATH_SEPARATOR.join(path)
    simple = f"{path[0]}{PATH_SEPARATOR}{path[-1]}"
    for key in (full, simple):
        if mapping.get(key):
            print(f"\n✅ Using mapped test stage: \"{mapping[key]}\" (matched: \"{key}\")")
            return mapping[key]

    print(f"\n⚠️  No test stage mapping found for: \"{full}\"")
    print(f"   Suggestion: \"{simple}\" → (test stage name)")
    choice = select_from_list(
        "🎯 Select option:",
        ["create", "original"],
        lambda opt, i: f"{i}. Create new mapping and save to config"
        if opt == "create"
        else f"{i}. Use original path: \"{full}\"",
    )
    if choice == "original":
        return full

    while True:
        stage = _prompt_text("Enter test stage name")
        if stage:
            break
        print("Test stage name cannot be empty.")
    if config.source_path is not None:
        save_test_stage_mapping(config.source_path, simple, stage)
        print(f"✅ Saved mapping \"{simple}\" → \"{stage}\" to {config.source_path.name}")
    return stage


def load_recs(config: AppConfig, overrides: Optional[Mapping[str, Any]] = None) -> Recommendations:
    recs_cfg = config.recommendations
    base = config.source_path.parent if config.source_path is not None else Path.cwd()
    recs = load_recommendations(
        base / recs_cfg.mock_file,
        mock_mode=recs_cfg.enable_mock_mode,
        overrides=overrides,
    )
    print(f"✅ Loaded recommendations (testStage: \"{recs.test_stage}\", status: {recs.status or 'unknown'})")
    return recs
