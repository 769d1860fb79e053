"""Turn raw provider records into canonical ModelEntry objects.

Every ``normalize_*`` function is pure and returns None for records that
cannot be used (unknown category, no usable price).
"""

import json
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple
from urllib.parse import urlparse

from ..domain import AUDIO_MODALITIES, Modality
from ..domain.models import (
    AudioPricing,
    EmbeddingPricing,
    ImagePricing,
    ModelEntry,
    Pricing,
    TextPricing,
    VideoPricing,
)
from ..pricing import has_usable_price
from .schemas import FalModel, OpenRouterModel, ReplicateModel

FAMILY_PATTERNS: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"claude"), "claude"),
    (re.compile(r"gpt"), "gpt"),
    (re.compile(r"gemini"), "gemini"),
    (re.compile(r"deepseek"), "deepseek"),
    (re.compile(r"llama"), "llama"),
    (re.compile(r"qwen"), "qwen"),
    (re.compile(r"mistral|mixtral"), "mistral"),
    (re.compile(r"flux"), "flux"),
    (re.compile(r"dall-e|dalle"), "dalle"),
    (re.compile(r"stable-diffusion|sdxl"), "stable-diffusion"),
    (re.compile(r"whisper"), "whisper"),
    (re.compile(r"midjourney"), "midjourney"),
    (re.compile(r"runway"), "runway"),
    (re.compile(r"elevenlabs|eleven-"), "elevenlabs"),
    (re.compile(r"kling"), "kling"),
    (re.compile(r"ideogram"), "ideogram"),
    (re.compile(r"recraft"), "recraft"),
]

DEFAULT_MODALITIES = ["text"]
IMAGE_KEYWORDS = ["image", "photo", "picture", "mask", "jpg", "jpeg", "png", "webp"]
VIDEO_KEYWORDS = ["video", "clip", "animation", "movie", "mp4", "webm", "gif"]
AUDIO_KEYWORDS = ["audio", "speech", "voice", "music", "wav", "mp3", "flac", "transcript"]
EMBEDDING_KEYWORDS = ["embedding", "embeddings", "vector", "vectors"]
TEXT_HINT_KEYWORDS = ["text", "prompt", "instruction", "caption", "query", "message"]

SOURCE_PREFIX = re.compile(r"^[^:]+::")
NUMERIC_STRING = re.compile(r"^-?\d+(\.\d+)?$")
MAX_PRICING_DEPTH = 5


def round6(value: float) -> float:
    return round(value, 6)


# Shared helpers


def normalize_modalities(values: Optional[Iterable[str]]) -> List[str]:
    """Lower-case, trim and dedupe; empty input means text."""
    cleaned = [v.strip().lower() for v in (values or []) if isinstance(v, str)]
    cleaned = [v for v in cleaned if v]
    if not cleaned:
        return list(DEFAULT_MODALITIES)
    return list(dict.fromkeys(cleaned))


def classify_modality(input_modalities: Sequence[str], output_modalities: Sequence[str]) -> Modality:
    """Map input/output modality sets to exactly one Modality.

    Rules are evaluated in priority order; the first match wins.
    """
    inputs = normalize_modalities(input_modalities)
    outputs = normalize_modalities(output_modalities)
    everything = set(inputs) | set(outputs)

    if len(inputs) > 1 and len(outputs) > 1:
        return Modality.MULTIMODAL
    if "image" in outputs:
        return Modality.IMAGE
    if "video" in outputs:
        return Modality.VIDEO
    if "music" in outputs or "sound" in outputs:
        return Modality.AUDIO_GENERATION
    if "audio" in outputs:
        if inputs == ["audio"]:
            return Modality.AUDIO_STT
        return Modality.AUDIO_TTS
    if "embedding" in outputs or "vector" in outputs:
        return Modality.EMBEDDING
    # Pure audio->text pipelines only; broad multimodal models stay below.
    if inputs == ["audio"] and outputs == ["text"]:
        return Modality.AUDIO_STT
    if "image" in inputs and "text" in outputs:
        return Modality.VISION
    if len(everything) > 2:
        return Modality.MULTIMODAL
    return Modality.TEXT


def extract_family(model_id: str, name: Optional[str] = None) -> str:
    combined = f"{model_id} {name or ''}".lower()
    for pattern, family in FAMILY_PATTERNS:
        if pattern.search(combined):
            return family
    return "other"


def extract_provider(model_id: str) -> str:
    """First path segment of an id, ignoring any ``source::`` prefix."""
    provider = SOURCE_PREFIX.sub("", model_id).split("/")[0]
    return provider or "unknown"


# OpenRouter


def _parse_price(raw: Optional[str]) -> float:
    if not raw:
        return 0.0
    try:
        value = float(raw)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def normalize_openrouter_model(raw: OpenRouterModel) -> Optional[ModelEntry]:
    prompt_per_token = _parse_price(raw.pricing.prompt)
    completion_per_token = _parse_price(raw.pricing.completion)

    if prompt_per_token < 0 or completion_per_token < 0:
        return None
    if prompt_per_token == 0 and completion_per_token == 0:
        return None

    architecture = raw.architecture
    inputs = normalize_modalities(architecture.input_modalities if architecture else None)
    outputs = normalize_modalities(architecture.output_modalities if architecture else None)

    context_length = raw.context_length if raw.context_length and raw.context_length > 0 else None

    return ModelEntry(
        id=f"openrouter::{raw.id}",
        source="openrouter",
        name=raw.name,
        modality=classify_modality(inputs, outputs),
        input_modalities=inputs,
        output_modalities=outputs,
        pricing=TextPricing(
            prompt_per_1m_tokens=round6(prompt_per_token * 1_000_000),
            completion_per_1m_tokens=round6(completion_per_token * 1_000_000),
        ),
        context_length=context_length,
        provider=extract_provider(raw.id),
        family=extract_family(raw.id, raw.name),
    )


# fal.ai


def classify_fal_category(category: str) -> Optional[Modality]:
    """Modality for a fal category, or None when it is not supported."""
    normalized = category.strip().lower()

    if "speech-to-text" in normalized or "audio-to-text" in normalized:
        return Modality.AUDIO_STT
    if "text-to-speech" in normalized:
        return Modality.AUDIO_TTS
    if any(
        marker in normalized
        for marker in (
            "text-to-audio",
            "audio-to-audio",
            "speech-to-speech",
            "video-to-audio",
            "audio-generation",
            "music",
        )
    ):
        return Modality.AUDIO_GENERATION
    if any(
        marker in normalized
        for marker in ("image-generation", "text-to-image", "image-to-image")
    ):
        return Modality.IMAGE
    if any(
        marker in normalized
        for marker in ("image-to-video", "text-to-video", "video-generation", "video-to-video")
    ):
        return Modality.VIDEO
    return None


def fal_input_modalities(category: str) -> List[str]:
    normalized = category.strip().lower()
    if normalized.startswith("image-to-"):
        return ["image"]
    if normalized.startswith("video-to-"):
        return ["video"]
    if normalized.startswith(("audio-to-", "speech-to-")):
        return ["audio"]
    return ["text"]


def fal_output_modalities(modality: Modality) -> List[str]:
    if modality == Modality.IMAGE:
        return ["image"]
    if modality == Modality.VIDEO:
        return ["video"]
    if modality in (Modality.AUDIO_TTS, Modality.AUDIO_GENERATION):
        return ["audio"]
    return ["text"]


def _fal_pricing(raw: FalModel, modality: Modality) -> Optional[Pricing]:
    amount = raw.amount
    if not math.isfinite(amount) or amount <= 0:
        return None
    amount = round6(amount)
    price_type = raw.price_type.lower()

    if modality == Modality.IMAGE:
        return ImagePricing(per_image=amount)
    if modality == Modality.VIDEO:
        if price_type == "per_second":
            return VideoPricing(per_second=amount)
        return VideoPricing(per_generation=amount)
    if modality in AUDIO_MODALITIES:
        if price_type == "per_minute":
            return AudioPricing(per_minute=amount)
        if price_type == "per_character":
            return AudioPricing(per_character=amount)
        return AudioPricing(per_second=amount)
    return None


def normalize_fal_model(raw: FalModel) -> Optional[ModelEntry]:
    modality = classify_fal_category(raw.category)
    if modality is None:
        return None

    pricing = _fal_pricing(raw, modality)
    if pricing is None:
        return None

    return ModelEntry(
        id=f"fal::{raw.id}",
        source="fal",
        name=raw.name,
        modality=modality,
        input_modalities=fal_input_modalities(raw.category),
        output_modalities=fal_output_modalities(modality),
        pricing=pricing,
        provider=extract_provider(raw.id),
        family=extract_family(raw.id, raw.name),
    )


# Replicate


def replicate_model_key(raw: ReplicateModel) -> Optional[str]:
    owner = raw.owner.strip()
    name = raw.name.strip()
    if owner and name:
        return f"{owner}/{name}"

    if raw.url and raw.url.strip():
        path = urlparse(raw.url.strip()).path.lstrip("/")
        return path or None
    return None


def _schema_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str).lower()


def _has_any_keyword(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _schema_node(openapi_schema: Any, name: str) -> Optional[Dict[str, Any]]:
    if not isinstance(openapi_schema, dict):
        return None
    components = openapi_schema.get("components")
    if not isinstance(components, dict):
        return None
    schemas = components.get("schemas")
    if not isinstance(schemas, dict):
        return None
    node = schemas.get(name)
    return node if isinstance(node, dict) else None


def _is_numeric_vector(schema: Dict[str, Any]) -> bool:
    if str(schema.get("type", "")).lower() != "array":
        return False
    items = schema.get("items")
    if not isinstance(items, dict):
        return False
    return str(items.get("type", "")).lower() in ("number", "integer")


def _has_uri_format(schema: Dict[str, Any]) -> bool:
    text = _schema_text(schema)
    return '"format":"uri"' in text or '"format":"url"' in text


def infer_replicate_modality(raw: ReplicateModel) -> Modality:
    """Guess a modality from the model's name and description."""
    combined = f"{raw.owner}/{raw.name} {raw.description or ''}".lower()

    if _has_any_keyword(combined, EMBEDDING_KEYWORDS):
        return Modality.EMBEDDING
    if re.search(r"transcrib|speech[\s-]?to[\s-]?text|stt|whisper|caption", combined):
        return Modality.AUDIO_STT
    if re.search(r"text[\s-]?to[\s-]?speech|tts|voiceover|voice synth|speech synth", combined):
        return Modality.AUDIO_TTS
    if re.search(r"music|sound effect|audio generation|text[\s-]?to[\s-]?audio", combined):
        return Modality.AUDIO_GENERATION
    if re.search(r"vision|ocr|image understanding|analy[sz]e image|vqa", combined):
        return Modality.VISION
    if _has_any_keyword(combined, VIDEO_KEYWORDS):
        return Modality.VIDEO
    if _has_any_keyword(combined, IMAGE_KEYWORDS):
        return Modality.IMAGE
    return Modality.TEXT


def modalities_for(modality: Modality) -> Tuple[List[str], List[str]]:
    """Representative (inputs, outputs) for a modality."""
    if modality == Modality.IMAGE:
        return ["text"], ["image"]
    if modality == Modality.VIDEO:
        return ["text"], ["video"]
    if modality == Modality.AUDIO_STT:
        return ["audio"], ["text"]
    if modality in (Modality.AUDIO_TTS, Modality.AUDIO_GENERATION):
        return ["text"], ["audio"]
    if modality == Modality.VISION:
        return ["image"], ["text"]
    if modality == Modality.EMBEDDING:
        return ["text"], ["embedding"]
    if modality == Modality.MULTIMODAL:
        return ["text", "image"], ["text", "image"]
    return ["text"], ["text"]


def _replicate_inputs(openapi_schema: Any) -> List[str]:
    node = _schema_node(openapi_schema, "Input")
    if node is None:
        return ["text"]

    text = _schema_text(node)
    found: List[str] = []
    if _has_any_keyword(text, IMAGE_KEYWORDS):
        found.append("image")
    if _has_any_keyword(text, VIDEO_KEYWORDS):
        found.append("video")
    if _has_any_keyword(text, AUDIO_KEYWORDS):
        found.append("audio")
    if _has_any_keyword(text, TEXT_HINT_KEYWORDS) or not found:
        found.append("text")
    return found


def _replicate_outputs(openapi_schema: Any, raw: ReplicateModel) -> List[str]:
    node = _schema_node(openapi_schema, "Output")
    if node is None:
        return modalities_for(infer_replicate_modality(raw))[1]

    text = _schema_text(node)
    found: List[str] = []
    if _has_any_keyword(text, EMBEDDING_KEYWORDS) or _is_numeric_vector(node):
        found.append("embedding")
    if _has_any_keyword(text, IMAGE_KEYWORDS):
        found.append("image")
    if _has_any_keyword(text, VIDEO_KEYWORDS):
        found.append("video")
    if _has_any_keyword(text, AUDIO_KEYWORDS):
        found.append("audio")

    if not found and _has_uri_format(node):
        inferred = infer_replicate_modality(raw)
        if inferred == Modality.VIDEO:
            found.append("video")
        elif inferred == Modality.AUDIO_STT:
            found.append("text")
        elif inferred in AUDIO_MODALITIES:
            found.append("audio")
        elif inferred == Modality.EMBEDDING:
            found.append("embedding")
        else:
            found.append("image")

    return found or ["text"]


def collect_numeric_entries(value: Any, parent_key: str = "", depth: int = 0) -> List[Tuple[str, float]]:
    """Flatten nested pricing data into (dotted.key, number) pairs."""
    if depth > MAX_PRICING_DEPTH or value is None or isinstance(value, bool):
        return []

    if isinstance(value, (int, float)):
        return [(parent_key.lower(), float(value))] if math.isfinite(value) else []

    if isinstance(value, str):
        trimmed = value.strip()
        if NUMERIC_STRING.match(trimmed):
            return [(parent_key.lower(), float(trimmed))]
        return []

    entries: List[Tuple[str, float]] = []
    if isinstance(value, list):
        for index, item in enumerate(value):
            entries.extend(collect_numeric_entries(item, f"{parent_key}[{index}]", depth + 1))
    elif isinstance(value, dict):
        for key, nested in value.items():
            child_key = f"{parent_key}.{key}" if parent_key else str(key)
            entries.extend(collect_numeric_entries(nested, child_key, depth + 1))
    return entries


def _first_by_key(sources: Sequence[Any], hints: Sequence[str]) -> Optional[Tuple[str, float]]:
    lowered = [hint.lower() for hint in hints]
    for source in sources:
        for key, value in collect_numeric_entries(source):
            if any(hint in key for hint in lowered):
                return key, value
    return None


def token_price_per_1m(entry: Optional[Tuple[str, float]]) -> Optional[float]:
    """Scale a token price to per-1M using hints in its key."""
    if entry is None:
        return None
    key, value = entry
    if not math.isfinite(value) or value <= 0:
        return None

    if "cent" in key:
        value = value / 100
    if "1m" in key:
        return round6(value)
    if "1k" in key:
        return round6(value * 1000)
    if "token" in key:
        return round6(value * 1_000_000)
    # Sub-cent amounts without a unit are per-token prices.
    if value < 0.01:
        return round6(value * 1_000_000)
    return round6(value)


def money_amount(entry: Optional[Tuple[str, float]]) -> Optional[float]:
    if entry is None:
        return None
    key, value = entry
    if not math.isfinite(value) or value <= 0:
        return None
    return round6(value / 100 if "cent" in key else value)


def _replicate_pricing(raw: ReplicateModel, modality: Modality) -> Optional[Pricing]:
    sources = [raw.pricing, raw.latest_version.pricing if raw.latest_version else None]

    if modality == Modality.TEXT:
        prompt_entry = _first_by_key(
            sources, ["prompt_per_1m", "input_per_1m", "prompt", "input"]
        ) or _first_by_key(sources, ["per_token", "token"])
        completion_entry = (
            _first_by_key(sources, ["completion_per_1m", "output_per_1m", "completion", "output"])
            or _first_by_key(sources, ["per_token", "token"])
            or prompt_entry
        )
        prompt = token_price_per_1m(prompt_entry)
        completion = token_price_per_1m(completion_entry)
        if prompt is None or completion is None:
            return None
        return TextPricing(prompt_per_1m_tokens=prompt, completion_per_1m_tokens=completion)

    if modality == Modality.EMBEDDING:
        entry = _first_by_key(sources, ["embedding_per_1m", "per_1m"]) or _first_by_key(
            sources, ["embedding", "per_token", "token"]
        )
        rate = token_price_per_1m(entry)
        return EmbeddingPricing(per_1m_tokens=rate) if rate is not None else None

    if modality == Modality.IMAGE:
        return ImagePricing(
            per_image=money_amount(
                _first_by_key(
                    sources,
                    ["per_image", "image", "per_generation", "generation", "per_run", "run", "predict"],
                )
            ),
            per_megapixel=money_amount(_first_by_key(sources, ["per_megapixel", "megapixel"])),
        )

    if modality == Modality.VIDEO:
        per_second = money_amount(_first_by_key(sources, ["per_second", "second"]))
        if per_second is not None:
            return VideoPricing(per_second=per_second)
        return VideoPricing(
            per_generation=money_amount(
                _first_by_key(sources, ["per_generation", "generation", "per_run", "run", "predict"])
            )
        )

    if modality in AUDIO_MODALITIES:
        per_minute = money_amount(_first_by_key(sources, ["per_minute", "minute"]))
        if per_minute is not None:
            return AudioPricing(per_minute=per_minute)
        per_character = money_amount(_first_by_key(sources, ["per_character", "character"]))
        if per_character is not None:
            return AudioPricing(per_character=per_character)
        return AudioPricing(
            per_second=money_amount(_first_by_key(sources, ["per_second", "second"]))
        )

    return None


def normalize_replicate_model(raw: ReplicateModel) -> Optional[ModelEntry]:
    key = replicate_model_key(raw)
    if not key:
        return None

    openapi_schema = raw.latest_version.openapi_schema if raw.latest_version else None
    inputs = _replicate_inputs(openapi_schema)
    outputs = _replicate_outputs(openapi_schema, raw)
    modality = classify_modality(inputs, outputs)

    if modality == Modality.TEXT:
        inferred = infer_replicate_modality(raw)
        if inferred != Modality.TEXT:
            inputs, outputs = modalities_for(inferred)
            modality = inferred

    pricing = _replicate_pricing(raw, modality)
    if pricing is None or not has_usable_price(pricing):
        return None

    return ModelEntry(
        id=f"replicate::{key}",
        source="replicate",
        name=raw.name or key,
        modality=modality,
        input_modalities=inputs,
        output_modalities=outputs,
        pricing=pricing,
        provider=extract_provider(key),
        family=extract_family(key, raw.name),
    )
