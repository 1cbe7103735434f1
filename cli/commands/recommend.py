from __future__ import annotations

from pathlib import Path

from cli.common import load_recs, resolve_skip_status, select_test_stage, select_user
from cli.navigation import navigate_to_tests, select_project
from cli.ui import print_header, print_section
from pipeline.orchestrator import RecommendRequest
from pipeline.pipeline import QTestSyncPipeline


def run_recommend_mode(args, pipeline: QTestSyncPipeline) -> int:
    services = pipeline.services
    print_header("SeaLights Test Recommendations Wizard")
    print("This wizard will help you apply SeaLights test recommendations to your qTest project.\n")

    print_section("Step 1: Select Project")
    project = select_project(services.execution)

    print_section("Step 2: Navigate to Test Location")
    location = navigate_to_tests(services.execution, project)
    print(f"\n✅ Selected location: {location.format_path()}")

    print_section("Step 3: Validate Status Configuration")
    skip_status = resolve_skip_status(services.status, project.project_id, services.config)

    print_section("Step 4: Select Test Stage")
    test_stage = select_test_stage(location.path, services.config)
    print(f"\n✅ Selected test stage: {test_stage}")

    print_section("Step 5: Select User")
    user_email, lab_id = select_user(services.config)

    print_section("Step 6: Fetch Recommendations from SeaLights")
    print(f"  - Project: {project.name}")
    print(f"  - Test Stage: {test_stage}")
    print(f"  - Lab ID: {lab_id or 'N/A'}")
    print(f"  - User: {user_email}")
    recommendations = load_recs(services.config, {"appName": project.name, "testStage": test_stage})

    print_section("Step 7: Apply Recommendations")
    pipeline.recommend(
        RecommendRequest(
            location=location,
            test_stage=test_stage,
            skip_status=skip_status,
            user_email=user_email,
            lab_id=lab_id,
            recommendations=recommendations,
            project_name=project.name,
            output_dir=Path(pipeline.output_dir),
        )
    )
    print("\n✅ Recommendations wizard complete!")
    return 0
