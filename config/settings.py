"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError if ANTHROPIC_API_KEY is missing
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── API Keys ────────────────────────────────────────────────────────────
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "")
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(default_factory=lambda: _env_flag("FLASK_DEBUG", "0"))
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5001"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )

    # ── Generation ──────────────────────────────────────────────────────────
    #: When off, a single schema-constrained call replaces the search → format chain.
    use_web_search: bool = field(
        default_factory=lambda: _env_flag("USE_WEB_SEARCH", "1")
    )
    max_web_searches: int = field(
        default_factory=lambda: int(os.environ.get("MAX_WEB_SEARCHES", "5"))
    )
    max_output_tokens: int = field(
        default_factory=lambda: int(os.environ.get("MAX_OUTPUT_TOKENS", "8192"))
    )
    #: SDK-level retries. Zero by default: retry policy belongs to the caller.
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("ANTHROPIC_MAX_RETRIES", "0"))
    )

    # ── AI Models ───────────────────────────────────────────────────────────
    #: Model used for the web-search research pass.
    research_model: str = field(
        default_factory=lambda: os.environ.get("RESEARCH_MODEL", "claude-haiku-4-5")
    )
    #: Model used for the schema-constrained formatting pass.
    format_model: str = field(
        default_factory=lambda: os.environ.get("FORMAT_MODEL", "claude-haiku-4-5")
    )
    #: Model used for the one-shot JSON repair pass.
    repair_model: str = field(
        default_factory=lambda: os.environ.get("REPAIR_MODEL", "claude-haiku-4-5")
    )

    def validate(self) -> None:
        """Raise ``ValueError`` if any required setting is missing."""
        if not self.anthropic_api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Copy .env.example to .env and add your key."
            )
