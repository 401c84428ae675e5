# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-08
# Updated: 2026-10-18
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass
from dotenv import load_dotenv, find_dotenv

# Load .env once globally
load_dotenv(find_dotenv(usecwd=True), override=True)


@dataclass(frozen=True)
class Config:
    # OpenAI (embeddings + chat)
    openai_api_key: str
    openai_base_url: str
    openai_chat_model: str
    openai_embed_model: str

    # Civic data API (meeting summaries)
    document_source_endpoint: str

    # Chroma Vector Database
    # chroma_mode: "cloud" | "persistent" | "ephemeral"
    chroma_mode: str
    chroma_path: str
    chroma_api_key: str
    chroma_tenant: str
    chroma_database: str
    chroma_collection: str

    # Chat history / query analytics (SQLite file, blank disables)
    chat_log_path: str

    # Shared bearer token for /chat (blank = any bearer token accepted)
    chat_api_token: str

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # OpenAI
        "openai_api_key": "OPENAI_API_KEY",
        "openai_base_url": "OPENAI_BASE_URL",          # e.g. https://api.openai.com/v1
        "openai_chat_model": "OPENAI_CHAT_MODEL",
        "openai_embed_model": "OPENAI_EMBED_MODEL",

        # Civic data API
        "document_source_endpoint": "CIVIC_SOURCE_ENDPOINT",

        # Chroma
        "chroma_mode": "CHROMA_MODE",
        "chroma_path": "CHROMA_PATH",
        "chroma_api_key": "CHROMA_API_KEY",
        "chroma_tenant": "CHROMA_TENANT",
        "chroma_database": "CHROMA_DATABASE",
        "chroma_collection": "CHROMA_COLLECTION",

        # Chat log / auth
        "chat_log_path": "CIVIC_CHAT_LOG_PATH",
        "chat_api_token": "CIVIC_CHAT_API_TOKEN",
    }

    # Defaults for optional fields; anything not listed here is required
    DEFAULTS = {
        "openai_base_url": "https://api.openai.com/v1",
        "openai_chat_model": "gpt-4.1-2025-04-14",
        "openai_embed_model": "text-embedding-3-small",
        "chroma_mode": "persistent",
        "chroma_path": "./.chroma",
        "chroma_api_key": "",
        "chroma_tenant": "",
        "chroma_database": "",
        "chroma_collection": "document_embeddings",
        "chat_log_path": "./data/chat_log.sqlite3",
        "chat_api_token": "",
    }

    # Convenient *groups* for use in tests / health checks
    OPENAI_ENV_VARS = (
        "OPENAI_API_KEY",
        "OPENAI_CHAT_MODEL",
    )

    CHROMA_CLOUD_ENV_VARS = (
        "CHROMA_API_KEY",
        "CHROMA_TENANT",
        "CHROMA_DATABASE",
    )

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables."""
        kwargs = {
            field_name: os.getenv(env_name) or Config.DEFAULTS.get(field_name, "")
            for field_name, env_name in Config.ENV_VARS.items()
        }
        return Config(**kwargs)

    def __post_init__(self):
        """
        Fail fast if any required config is missing.

        Required = every field without an entry in DEFAULTS, plus the Chroma
        cloud credentials when chroma_mode == "cloud".
        """
        missing_fields = [
            k for k, v in self.__dict__.items()
            if not v and k not in self.DEFAULTS
        ]

        if self.chroma_mode == "cloud":
            missing_fields += [
                k for k in ("chroma_api_key", "chroma_tenant", "chroma_database")
                if not getattr(self, k)
            ]

        if missing_fields:
            missing_env_vars = [self.ENV_VARS[f] for f in missing_fields]
            raise ValueError(f"Missing required environment variables: {missing_env_vars}")

        if self.chroma_mode not in ("cloud", "persistent", "ephemeral"):
            raise ValueError(f"CHROMA_MODE must be cloud|persistent|ephemeral, got {self.chroma_mode!r}")

    def summary(self) -> dict:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "openai_base_url": self.openai_base_url,
            "openai_chat_model": self.openai_chat_model,
            "openai_embed_model": self.openai_embed_model,
            "document_source_endpoint": self.document_source_endpoint,
            "chroma_mode": self.chroma_mode,
            "chroma_tenant": self.chroma_tenant,
            "chroma_database": self.chroma_database,
            "chroma_collection": self.chroma_collection,
            "chat_log_path": self.chat_log_path,
        }
