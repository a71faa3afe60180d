"""
Generation task orchestration.

Components:
- GenerationTaskOrchestrator: submit jobs and poll them to a terminal state
"""

from tryon_assets.tasks.orchestrator import GenerationTaskOrchestrator, TaskCallback

__all__ = ["GenerationTaskOrchestrator", "TaskCallback"]
