"""Report submission pipeline.

Provides the submission flow around corroboration scoring:
- ReportPipeline: report stored -> scoring scheduled as a detached task
"""

from credibility_system.pipeline.report_pipeline import ReportPipeline

__all__ = ["ReportPipeline"]
