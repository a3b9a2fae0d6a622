"""
Pipeline Configuration

Immutable configuration dataclass for pipeline metadata.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable configuration for a pipeline.

    Attributes:
        name: Internal name used for tracking (e.g., "schedule_sync")
        display_name: Human-readable name (e.g., "Schedule Sync")
        description: What this pipeline does
        target_table: Primary table this pipeline writes to
        allow_concurrent: Whether multiple instances can run simultaneously.
            When False, an overlapping run is rejected with a conflict.
        lock_group: Pipelines sharing a lock group exclude each other
            (defaults to the pipeline name)
        depends_on: Pipeline names that must complete first
    """

    name: str
    display_name: str
    description: str
    target_table: str

    # Execution constraints
    allow_concurrent: bool = False
    lock_group: str = ""

    # Dependencies (other pipeline names that must complete first)
    depends_on: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate configuration."""
        if not self.name:
            raise ValueError("Pipeline name is required")
        if not self.target_table:
            raise ValueError("Pipeline target_table is required")

    @property
    def lock_key(self) -> str:
        return self.lock_group or self.name
