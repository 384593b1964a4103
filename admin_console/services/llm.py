from typing import Any
import json

import openai
from openai import OpenAI

from admin_console.config import settings
from admin_console.errors import NetworkFailure, RemoteOperationFailure
from admin_console.logging_setup import log_event
from admin_console.services.composer import PLATFORMS

BRAND_PROFILE = """MKN Group Hakkında:
- Türkiye'nin önde gelen ambalaj ve kozmetik üretim firması
- ISO 22716 sertifikalı kozmetik üretimi
- E-ticaret fulfillment hizmetleri
- B2B ve B2C çözümler"""

PLATFORM_HINTS = {
    "instagram": "Görsel odaklı, story-friendly format, modern dil",
    "linkedin": "Profesyonel ve B2B odaklı, sektör uzmanlığı vurgusu",
    "facebook": "Geniş kitle odaklı, paylaşılabilir ve etkileşimli",
    "twitter": "Kısa ve etkili, güncel ve hashtag odaklı",
    "youtube": "Video açıklaması, detaylı ve eğitici",
    "tiktok": "Genç kitle odaklı, trend ve yaratıcı",
}

def get_client():
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is missing. Please set it in your environment or .env file.")
    # Retries are off on purpose: a failed generation is repeated by the user
    return OpenAI(api_key=settings.openai_api_key, timeout=settings.request_timeout_seconds, max_retries=0)

def _complete_json(system_msg: str, prompt: str) -> dict[str, Any]:
    client = get_client()
    try:
        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": system_msg},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
    except (openai.APITimeoutError, openai.APIConnectionError) as e:
        log_event("llm_request_failed", level="error", error=str(e))
        raise NetworkFailure(f"AI request did not complete: {e}") from e
    except openai.APIError as e:
        log_event("llm_request_failed", level="error", error=str(e))
        raise RemoteOperationFailure(f"AI provider rejected the request: {e}") from e

    raw = response.choices[0].message.content or ""
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        log_event("llm_bad_json", level="error", preview=raw[:200])
        raise RemoteOperationFailure("AI response was not valid JSON") from e

def _system_prompt(content_type: str, tone: str, target_audience: str, brand_context: str,
                   instructions: str, include_hashtags: bool, include_emojis: bool) -> str:
    lines = [
        "Sen MKN Group için sosyal medya içeriği üreten uzman bir pazarlama profesyonelisin.",
        BRAND_PROFILE,
        f"İçerik türü: {content_type}",
        f"Ton: {tone}",
        f"Hedef kitle: {target_audience or 'genel'}",
    ]
    if brand_context:
        lines.append(f"Ek marka bilgisi: {brand_context}")
    if instructions:
        lines.append(f"Ek talimatlar: {instructions}")
    lines.append("Hashtag ekle." if include_hashtags else "Hashtag kullanma.")
    lines.append("Platforma uygun emojiler kullan." if include_emojis else "Emoji kullanma.")
    lines.append("Türkçe yaz. Meta açıklama ekleme.")
    return "\n".join(lines)

def _platform_line(platform: str) -> str:
    config = PLATFORMS[platform]
    return (
        f"- {platform}: en fazla {config['char_limit']} karakter, "
        f"en fazla {config['hashtag_limit']} hashtag. {PLATFORM_HINTS.get(platform, '')}"
    )

def _as_result(data: dict[str, Any]) -> dict[str, Any]:
    hashtags = [str(h).strip() for h in data.get("hashtags") or [] if str(h).strip()]
    return {
        "content": str(data.get("content") or "").strip(),
        "hashtags": [h if h.startswith("#") else f"#{h}" for h in hashtags],
    }

def generate_social_content(
    platform: str,
    topic: str,
    content_type: str = "promotional",
    tone: str = "professional",
    target_audience: str = "",
    brand_context: str = "",
    instructions: str = "",
    include_hashtags: bool = True,
    include_emojis: bool = True,
) -> dict[str, Any]:
    """Single-platform generation: one request, returns ``{content, hashtags}``."""
    system_msg = _system_prompt(content_type, tone, target_audience, brand_context,
                                instructions, include_hashtags, include_emojis)
    prompt = f"""
    Konu: {topic}
    Platform:
    {_platform_line(platform)}

    Return JSON:
    {{
        "content": "post text without hashtags",
        "hashtags": ["#tag1", "#tag2"]
    }}
    """
    log_event("llm_generate_start", platform=platform)
    result = _as_result(_complete_json(system_msg, prompt))
    if not include_hashtags:
        result["hashtags"] = []
    return result

def generate_multi_platform_content(
    platforms: list[str],
    topic: str,
    content_type: str = "promotional",
    tone: str = "professional",
    target_audience: str = "",
    brand_context: str = "",
    instructions: str = "",
    include_hashtags: bool = True,
    include_emojis: bool = True,
) -> dict[str, dict[str, Any]]:
    """One batched request for every platform; returns ``{platform: {content, hashtags}}``."""
    system_msg = _system_prompt(content_type, tone, target_audience, brand_context,
                                instructions, include_hashtags, include_emojis)
    platform_lines = "\n".join(_platform_line(p) for p in platforms)
    prompt = f"""
    Konu: {topic}
    Her platform için ayrı, o platforma özgü bir içerik üret:
    {platform_lines}

    Return JSON with exactly these platform keys: {", ".join(platforms)}
    {{
        "<platform>": {{"content": "post text without hashtags", "hashtags": ["#tag1"]}}
    }}
    """
    log_event("llm_generate_start", platforms=list(platforms))
    data = _complete_json(system_msg, prompt)
    missing = [p for p in platforms if not isinstance(data.get(p), dict)]
    if missing:
        raise RemoteOperationFailure(f"AI response is missing platforms: {', '.join(missing)}")
    results = {p: _as_result(data[p]) for p in platforms}
    if not include_hashtags:
        for result in results.values():
            result["hashtags"] = []
    return results
