from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"


class AppConfig(BaseModel):
    data_dir: Path = Path("data/docs")
    persist_dir: Path = Path("data/chroma")
    cache_dir: Path = Path("data/cache")
    collection: str = "documents"
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")

    max_pdf_pages: int | None = None


class VectorStoreConfig(BaseModel):
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"


class ChunkingConfig(BaseModel):
    chunk_size: int = Field(default=1200, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    @model_validator(mode="after")
    def _overlap_below_size(self) -> "ChunkingConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self


class RetrievalConfig(BaseModel):
    query_k: int = Field(default=8, gt=0)  # chat retrieval depth
    search_k: int = Field(default=5, gt=0)  # inspection-only search depth
    snippet_chars: int = Field(default=220, gt=0)


class EvidenceConfig(BaseModel):
    min_chunks: int = Field(default=2, ge=0)
    min_matched_tokens: int = Field(default=1, ge=0)
    min_overlap_ratio: float = Field(default=0.45, ge=0.0, le=1.0)
    top_n: int = Field(default=3, gt=0)
    max_chars: int = Field(default=1600, gt=0)
    min_token_length: int = Field(default=3, gt=0)


class CitationConfig(BaseModel):
    max_display: int = Field(default=5, gt=0)


class LLMConfig(BaseModel):
    provider: str = "ollama"
    model_name: str = "llama3.1"
    temperature: float = 0.0


class GlobalYAMLConfig(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    vectorstore: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    evidence: EvidenceConfig = Field(default_factory=EvidenceConfig)
    citations: CitationConfig = Field(default_factory=CitationConfig)
    llm_qa: LLMConfig = Field(default_factory=LLMConfig)


def load_yaml_config(path: Path | None = None) -> GlobalYAMLConfig:
    path = path or Path(os.getenv("KB_CONFIG", DEFAULT_CONFIG_PATH))
    with open(path, "r") as f:
        raw = yaml.safe_load(f)
    return GlobalYAMLConfig(**(raw or {}))


class EnvSettings(BaseSettings):
    """Deployment overrides read from the environment or a local .env file."""

    chroma_url: Optional[str] = None  # e.g. http://localhost:8000; unset = local persist_dir
    chroma_collection: Optional[str] = None
    data_dir: Optional[Path] = None
    reset_collection: bool = False
    ollama_base_url: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


yaml_config = load_yaml_config()
env_settings = EnvSettings()
