from __future__ import annotations

from langchain_ollama import ChatOllama

from common.config import env_settings, yaml_config
from common.logger import get_logger

log = get_logger(__name__)


def load_chat_llm(config_section="llm_qa"):
    """
    Load a chat model based on a config section. Temperature 0 keeps
    answers deterministic for the same evidence.
    """
    cfg = getattr(yaml_config, config_section)

    if cfg.provider == "ollama":
        kwargs = {"model": cfg.model_name, "temperature": cfg.temperature}
        if env_settings.ollama_base_url:
            kwargs["base_url"] = env_settings.ollama_base_url
        log.info("Using Ollama chat model '%s'", cfg.model_name)
        return ChatOllama(**kwargs)
    else:
        raise ValueError(f"Unsupported provider: {cfg.provider}")
