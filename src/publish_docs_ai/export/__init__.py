"""
Export modules for publish-docs-ai.
"""

from publish_docs_ai.export.hugo import ExportResult, HugoExporter

__all__ = ["ExportResult", "HugoExporter"]
