"""
Configuration settings for Exam Analysis Dash.
"""

import os


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment."""

    # Thresholds (percent)
    FAIL_THRESHOLD: float = float(os.environ.get("EXAM_FAIL_THRESHOLD", 50))
    STRONG_THRESHOLD: float = float(os.environ.get("EXAM_STRONG_THRESHOLD", 75))
    WEAK_OUTCOME_THRESHOLD: float = float(os.environ.get("EXAM_WEAK_OUTCOME_THRESHOLD", 60))
    TREND_DELTA: float = float(os.environ.get("EXAM_TREND_DELTA", 5))

    # Import
    CLAMP_IMPORTED_SCORES: bool = _env_bool("EXAM_CLAMP_IMPORTED_SCORES", "true")

    # UI
    PAGE_TITLE: str = os.environ.get("EXAM_PAGE_TITLE", "Exam Analysis Dash")

    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    def validate(self):
        """Validate threshold settings."""
        for name in ("FAIL_THRESHOLD", "STRONG_THRESHOLD", "WEAK_OUTCOME_THRESHOLD"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")
        if self.TREND_DELTA < 0:
            raise ValueError("TREND_DELTA must not be negative")
        return True


# Global settings instance
settings = Settings()
