from __future__ import annotations

from cli.ui import print_header
from pipeline.pipeline import QTestSyncPipeline


def run_list_projects(args, pipeline: QTestSyncPipeline) -> int:
    print_header("qTest Projects List")
    projects = pipeline.services.client.get_projects()
    print(f"\nFound {len(projects)} project(s):\n")
    for project in projects:
        print(f"{project.get('id')}: {project.get('name')}")
    print("\n✅ Done!")
    return 0
