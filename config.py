"""Configuration settings for the BuildMind pipeline."""

# Load .env into os.environ so vendor fallbacks (e.g. OPENAI_API_KEY) work
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

import os
from pathlib import Path
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global settings for BuildMind.

    Settings can be overridden via environment variables with BUILDMIND_ prefix.
    Example: BUILDMIND_BUILD_MAX_RETRIES=5

    Provider keys additionally fall back to the vendor's standard variable
    (ANTHROPIC_API_KEY, GOOGLE_API_KEY / GEMINI_API_KEY, OPENAI_API_KEY, DEEPSEEK_API_KEY).
    """

    # Provider credentials
    anthropic_api_key: str = Field(default="", description="Provider A: Anthropic Claude")
    gemini_api_key: str = Field(default="", description="Provider B: Google Gemini")
    openai_api_key: str = Field(default="", description="Provider C: OpenAI")
    deepseek_api_key: str = Field(default="", description="Provider D: any LiteLLM route (Deepseek by default)")

    # Models per provider and complexity
    anthropic_model_high: str = Field(default="claude-sonnet-4-20250514")
    anthropic_model_low: str = Field(default="claude-3-5-haiku-20241022")
    gemini_model_high: str = Field(default="gemini-2.5-pro")
    gemini_model_low: str = Field(default="gemini-2.5-flash")
    gemini_image_model: str = Field(default="gemini-2.5-flash-image")
    openai_model_high: str = Field(default="gpt-4o")
    openai_model_low: str = Field(default="gpt-4o-mini")
    litellm_model: str = Field(default="deepseek/deepseek-chat", description="LiteLLM model string for provider D")

    # Call parameters
    max_output_tokens: int = Field(default=4096, description="Maximum tokens per model call")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    default_system_instruction: str = Field(default="You are a helpful AI assistant.")
    api_max_retries: int = Field(default=3, ge=1, description="Attempts per gateway call")
    retry_base_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Backoff base; the delay before retry n is base * 2**n",
    )
    api_timeout_seconds: float = Field(default=120.0, gt=0, description="Timeout for a single model call")

    # Embeddings
    openai_embedding_model: str = Field(default="text-embedding-3-small")
    gemini_embedding_model: str = Field(default="models/text-embedding-004")
    embedding_dimension: int = Field(default=1536)

    # Brain (knowledge store)
    brain_similarity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    brain_search_limit: int = Field(default=5)
    brain_context_entries: int = Field(default=3)
    brain_owner_id: str = Field(default="local-user", description="Owner id stamped on brain entries")
    supabase_url: str = Field(default="", description="Supabase project URL; empty = in-memory brain")
    supabase_key: str = Field(default="", description="Supabase API key (service or user JWT)")
    supabase_timeout_seconds: float = Field(default=30.0)

    # Build loop
    build_max_retries: int = Field(default=3, ge=1)
    build_speed_max_retries: int = Field(default=2, ge=1)
    ai_analysis_concurrency: int = Field(default=3, ge=1)
    ai_analysis_max_files: int = Field(default=5, ge=0)
    ai_analysis_char_limit: int = Field(default=2000)
    any_type_threshold: int = Field(default=5)
    build_cache_ttl_seconds: float = Field(default=300.0)
    build_cache_max_entries: int = Field(default=50)
    monitor_interval_seconds: float = Field(default=60.0, gt=0)

    # Orchestrator
    review_concurrency: int = Field(default=3, ge=1)
    default_project_id: str = Field(default="default")
    existing_files_in_prompt: int = Field(default=20)

    # Paths
    asset_dir: str = Field(default="./assets", description="Generated image assets")
    output_dir: str = Field(default="./outputs", description="CLI run output directory")

    model_config = {
        "env_prefix": "BUILDMIND_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def model_post_init(self, __context) -> None:
        for field_name, env_vars in VENDOR_KEY_FALLBACKS.items():
            if getattr(self, field_name):
                continue
            for env_var in env_vars:
                value = os.environ.get(env_var, "").strip()
                if value:
                    object.__setattr__(self, field_name, value)
                    break

    def has_key(self, field_name: str) -> bool:
        """True if the credential field holds a non-blank value."""
        return bool((getattr(self, field_name, "") or "").strip())

    def get_asset_path(self) -> Path:
        return Path(self.asset_dir)

    def get_output_path(self) -> Path:
        return Path(self.output_dir)


# Settings field -> vendor env vars consulted when the BUILDMIND_ variable is unset
VENDOR_KEY_FALLBACKS: Dict[str, tuple] = {
    "anthropic_api_key": ("ANTHROPIC_API_KEY",),
    "gemini_api_key": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    "openai_api_key": ("OPENAI_API_KEY",),
    "deepseek_api_key": ("DEEPSEEK_API_KEY",),
}


# Create singleton instance
settings = Settings()
