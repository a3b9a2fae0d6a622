from .pipeline_run import PipelineRun

__all__ = ["PipelineRun"]
