"""
Publishing orchestration for publish-docs-ai.
"""

from publish_docs_ai.publish.pipeline import (
    PipelineConfig,
    ProgressInfo,
    PublishPipeline,
    PublishResult,
    PublishStage,
    RunSummary,
)

__all__ = [
    "PipelineConfig",
    "ProgressInfo",
    "PublishPipeline",
    "PublishResult",
    "PublishStage",
    "RunSummary",
]
