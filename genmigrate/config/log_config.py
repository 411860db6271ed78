#!filepath: genmigrate/config/log_config.py
from pydantic import BaseModel, field_validator

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class LogConfig(BaseModel):
    dir: str = "logs"
    rotation: str = "1 day"
    retention: str = "30 days"
    level: str = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def _known_level(cls, v):
        level = str(v).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {v!r}, expected one of {LOG_LEVELS}")
        return level

    def sink_kwargs(self) -> dict:
        """Keyword arguments for Logging.reconfigure()."""
        return {
            "log_dir": self.dir,
            "rotation": self.rotation,
            "retention": self.retention,
            "log_level": self.level,
        }
