"""
Model id translation.

Claude Code: "opus", "claude-opus-4-6", "anthropic.claude-opus-4-6-v1:0" (Bedrock)
OpenCode / canonical: "provider/model" (e.g. "anthropic/claude-opus-4-6")
"""

from typing import Dict, List, Optional

from configconv.core.types import ModelTranslation

# Known model name -> provider/model
MODEL_MAP: Dict[str, str] = {
    "claude-opus-4-6": "anthropic/claude-opus-4-6",
    "claude-opus-4-5": "anthropic/claude-opus-4-5",
    "claude-opus-4-5-20250410": "anthropic/claude-opus-4-5",
    "claude-sonnet-4-5": "anthropic/claude-sonnet-4-5",
    "claude-sonnet-4-5-20250514": "anthropic/claude-sonnet-4-5",
    "claude-sonnet-4-5-20250929": "anthropic/claude-sonnet-4-5",
    "claude-sonnet-4": "anthropic/claude-sonnet-4",
    "claude-3-5-sonnet-20241022": "anthropic/claude-3-5-sonnet-20241022",
    "claude-3-5-haiku-20241022": "anthropic/claude-3-5-haiku-20241022",
    "claude-3-opus-20240229": "anthropic/claude-3-opus-20240229",
    "claude-3-haiku-20240307": "anthropic/claude-3-haiku-20240307",
    # Short aliases used in Claude Code agent frontmatter
    "opus": "anthropic/claude-opus-4-6",
    "sonnet": "anthropic/claude-sonnet-4-5",
    "haiku": "anthropic/claude-3-5-haiku-20241022",
}

BEDROCK_PREFIXES = (
    "anthropic.",
    "us.anthropic.",
    "eu.anthropic.",
    "ap.anthropic.",
    "global.anthropic.",
)

# "Use the parent's model"; never translated, never emitted
INHERIT = "inherit"

PROVIDER_PREFIXES = ("anthropic/", "amazon-bedrock/", "google-vertex/")


def detect_provider(env: Optional[Dict[str, str]] = None, model: Optional[str] = None) -> str:
    env = env or {}
    if env.get("CLAUDE_CODE_USE_BEDROCK") == "1":
        return "amazon-bedrock"
    if env.get("CLAUDE_CODE_USE_VERTEX") == "1":
        return "google-vertex"
    if model and model.startswith(BEDROCK_PREFIXES):
        return "amazon-bedrock"
    return "anthropic"


def translate_model_id(
    model: str,
    provider: Optional[str] = None,
    overrides: Optional[Dict[str, str]] = None,
) -> str:
    """
    Translate any model id to "provider/model".

    Thu tu: overrides -> da co "/" -> MODEL_MAP -> Bedrock -> "claude-*" -> provider fallback.
    """
    if overrides and model in overrides:
        return overrides[model]
    if "/" in model:
        return model
    if model in MODEL_MAP:
        return MODEL_MAP[model]
    if model.startswith(BEDROCK_PREFIXES):
        return f"amazon-bedrock/{model}"
    if model.startswith("claude-"):
        return f"anthropic/{model}"
    return f"{provider or 'anthropic'}/{model}"


def alias_source(model: str, overrides: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Bang tra cuu da doi ten model ("model_overrides" / "alias map"), None neu khong phai alias."""
    if overrides and model in overrides:
        return "model_overrides"
    if "/" not in model and model in MODEL_MAP:
        return "alias map"
    return None


def canonical_model(
    model,
    overrides: Optional[Dict[str, str]] = None,
    provider: Optional[str] = None,
    notes: Optional[List[ModelTranslation]] = None,
    where: str = "",
) -> Optional[str]:
    """
    Model value from a source file -> canonical id. "inherit", empty and non-str -> None.

    Khi id duoc doi qua alias map / overrides va co `notes`, ghi lai mot ModelTranslation.
    """
    if not isinstance(model, str):
        return None
    model = model.strip()
    if not model or model == INHERIT:
        return None
    canonical = translate_model_id(model, provider, overrides)
    via = alias_source(model, overrides)
    if notes is not None and via and canonical != model:
        notes.append(ModelTranslation(where=where, source=model, target=canonical, via=via))
    return canonical


def suggest_small_model(main_model: str) -> str:
    if main_model.startswith("amazon-bedrock/"):
        return "amazon-bedrock/anthropic.claude-sonnet-4-5-20250929-v1:0"
    if main_model.startswith("google-vertex/"):
        return "google-vertex/claude-sonnet-4-5"
    return "anthropic/claude-sonnet-4-5"


def strip_provider_prefix(model: str) -> str:
    """'anthropic/claude-opus-4-6' -> 'claude-opus-4-6' (Claude Code style ids)."""
    for prefix in PROVIDER_PREFIXES:
        if model.startswith(prefix):
            return model[len(prefix):]
    return model


def is_valid_model_id(model: str) -> bool:
    provider, sep, name = model.partition("/")
    return bool(sep and provider and name)
