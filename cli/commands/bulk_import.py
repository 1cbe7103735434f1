from __future__ import annotations

from cli.common import load_recs, resolve_skip_status, select_user
from cli.navigation import navigate_and_select_module, navigate_to_execution_location, select_project
from cli.ui import _prompt_yes_no, print_header, print_section
from pipeline.orchestrator import BulkImportRequest, EmptyResultError
from pipeline.pipeline import QTestSyncPipeline


def run_bulk_import_mode(args, pipeline: QTestSyncPipeline) -> int:
    services = pipeline.services
    print_header("Bulk Import Tests from Test Design")
    print("This wizard will help you import test cases from Test Design into Test Execution.\n")

    print_section("Step 1: Select Project")
    project = select_project(services.execution)

    print_section("Step 2: Navigate to Test Execution Location")
    print("Navigate to the folder where you want to import tests.")
    print("You can stop at any level to select that location.\n")
    anchor = navigate_to_execution_location(services.execution, project)
    print(f"\n✅ Selected execution location: {anchor.format_path()}")

    print_section("Step 3: Select Module from Test Design")
    module = navigate_and_select_module(services.design, project)
    if module is None:
        raise EmptyResultError("No module selected.")
    print(f"\n✅ Selected module: {module.format_path()}")

    print_section("Step 4: Test Case Approval Status")
    print("Test cases in qTest can have different approval statuses (New, Approved, etc.).")
    print("Unapproved test cases may cause errors when updating their status.")
    include_unapproved = _prompt_yes_no("\nInclude unapproved test cases?", default=False)
    if include_unapproved:
        print("\n✅ Will import all test cases (including unapproved)")
    else:
        print("\n✅ Will import only approved test cases")

    # Everything that can fail on configuration is resolved before anything is created.
    print_section("Step 5: Validate Status Configuration")
    skip_status = resolve_skip_status(services.status, project.project_id, services.config)

    print_section("Step 6: Select User")
    user_email, lab_id = select_user(services.config)

    print_section("Step 7: Load Recommendations")
    recommendations = load_recs(services.config)

    print_section("Step 8: Confirm Import")
    print("\nYou are about to import:")
    print(f"  FROM: Test Design → {module.format_path()}")
    print(f"  TO: Test Execution → {anchor.format_path()}")
    print(f"  Filter: {'All test cases' if include_unapproved else 'Approved test cases only'}")
    if not _prompt_yes_no("\nProceed with import?", default=False):
        print("\n❌ Import cancelled.")
        return 0

    print_section("Step 9: Importing Tests")
    pipeline.bulk_import(
        BulkImportRequest(
            anchor=anchor,
            module=module,
            include_unapproved=include_unapproved,
            skip_status=skip_status,
            user_email=user_email,
            lab_id=lab_id,
            recommendations=recommendations,
        )
    )
    print("\n✅ Bulk import complete!")
    return 0
