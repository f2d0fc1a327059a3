"""History retention configuration."""

from pydantic import BaseModel


class RetentionConfig(BaseModel, frozen=True):
    """Retention sweep and statistics cache settings."""

    sweep_interval_seconds: int
    stats_cache_ttl_seconds: int

    @property
    def periodic_sweep_enabled(self) -> bool:
        """Check if the timer-driven sweep should run."""
        return self.sweep_interval_seconds > 0
