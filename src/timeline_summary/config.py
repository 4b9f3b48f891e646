"""
Configuration management for the timeline summary pipeline.

Loads settings from environment variables with sensible defaults.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)

# Salesforce retries are capped regardless of configuration
MAX_SALESFORCE_RETRIES = 10


class Config:
    """Configuration settings loaded from environment."""

    # OpenAI
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')
    OPENAI_MODEL: str = os.getenv('OPENAI_MODEL', 'gpt-4o')

    # Salesforce
    SF_LOGIN_URL: str = os.getenv('SF_LOGIN_URL', '')
    SF_API_VERSION: str = os.getenv('SF_API_VERSION', 'v59.0')
    SF_MAX_RETRIES: int = int(os.getenv('SF_MAX_RETRIES', '3'))
    TIMELINE_SUMMARY_OBJECT: str = os.getenv('TIMELINE_SUMMARY_OBJECT', 'Timeline_Summary__c')

    # Pipeline
    DIRECT_INPUT_THRESHOLD: int = int(os.getenv('DIRECT_INPUT_THRESHOLD', '2000'))
    PROMPT_LENGTH_THRESHOLD: int = int(os.getenv('PROMPT_LENGTH_THRESHOLD', '256000'))
    SUB_BATCH_SIZE: int = int(os.getenv('SUB_BATCH_SIZE', '500'))
    RUN_TIMEOUT_SECONDS: float = float(os.getenv('RUN_TIMEOUT_SECONDS', '600'))
    CALLBACK_TIMEOUT_SECONDS: float = float(os.getenv('CALLBACK_TIMEOUT_SECONDS', '30'))
    TEMP_FILE_DIR: str = os.getenv(
        'TEMP_FILE_DIR', os.path.join(tempfile.gettempdir(), 'timeline_summary')
    )

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_JSON: bool = os.getenv('LOG_JSON', 'false').lower() in ('1', 'true', 'yes')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.

        Returns:
            List of missing required configuration keys
        """
        missing = []
        if not cls.OPENAI_API_KEY:
            missing.append('OPENAI_API_KEY')
        if not cls.SF_LOGIN_URL:
            missing.append('SF_LOGIN_URL')
        return missing


# Singleton config instance
config = Config()


@dataclass(frozen=True)
class PipelineConfig:
    """
    Per-pipeline tuning passed explicitly to every component.

    Thresholds are exclusive upper bounds: a batch is delivered inline
    only when its record count and prompt length are both below them.
    """

    model: str = 'gpt-4o'
    max_inline_records: int = 2000
    max_prompt_chars: int = 256_000
    sub_batch_size: int = 500
    run_timeout_seconds: float = 600.0
    callback_timeout_seconds: float = 30.0
    temp_dir: Path = Path(tempfile.gettempdir()) / 'timeline_summary'
    summary_object: str = 'Timeline_Summary__c'
    max_field_chars: int = 131_070
    max_callback_message_chars: int = 1000
    max_subject_chars: int = 250
    max_description_chars: int = 1000

    @classmethod
    def from_config(cls, cfg: Config | None = None) -> 'PipelineConfig':
        """Build from the environment-backed Config."""
        cfg = cfg or config
        return cls(
            model=cfg.OPENAI_MODEL,
            max_inline_records=cfg.DIRECT_INPUT_THRESHOLD,
            max_prompt_chars=cfg.PROMPT_LENGTH_THRESHOLD,
            sub_batch_size=cfg.SUB_BATCH_SIZE,
            run_timeout_seconds=cfg.RUN_TIMEOUT_SECONDS,
            callback_timeout_seconds=cfg.CALLBACK_TIMEOUT_SECONDS,
            temp_dir=Path(cfg.TEMP_FILE_DIR),
            summary_object=cfg.TIMELINE_SUMMARY_OBJECT,
        )
