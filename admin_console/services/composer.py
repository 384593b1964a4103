"""Multi-platform post composer.

One set of global settings (topic, tone, audience) drives N per-platform
content variants. ``platform_content`` always has exactly the selected
platforms as keys; selecting inserts a blank entry and deselecting drops it.
"""
from dataclasses import dataclass
from typing import Any

from admin_console.errors import ValidationFailure
from admin_console.logging_setup import log_event

PLATFORMS: dict[str, dict[str, Any]] = {
    "instagram": {"name": "Instagram", "char_limit": 2200, "hashtag_limit": 30},
    "facebook": {"name": "Facebook", "char_limit": 63206, "hashtag_limit": 30},
    "twitter": {"name": "Twitter/X", "char_limit": 280, "hashtag_limit": 10},
    "linkedin": {"name": "LinkedIn", "char_limit": 3000, "hashtag_limit": 20},
    "youtube": {"name": "YouTube", "char_limit": 5000, "hashtag_limit": 15},
    "tiktok": {"name": "TikTok", "char_limit": 2200, "hashtag_limit": 20},
}

CONTENT_TONES = ("professional", "friendly", "casual", "informative", "exciting")

DEFAULT_GLOBAL_SETTINGS = {
    "title": "",
    "topic": "",
    "contentType": "",
    "tone": "professional",
    "targetAudience": "B2B",
    "brandContext": "",
    "additionalInstructions": "",
    "scheduledAt": None,
    "includeHashtags": True,
    "includeEmojis": True,
}

def blank_entry() -> dict[str, Any]:
    return {"content": "", "hashtags": [], "mentions": [], "mediaUrls": [], "customizations": {}}

@dataclass(frozen=True)
class CharacterBudget:
    current: int
    limit: int
    percentage: float
    is_over_limit: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current,
            "limit": self.limit,
            "percentage": self.percentage,
            "isOverLimit": self.is_over_limit,
        }

def character_budget(platform: str, content: str, hashtags: list[str]) -> CharacterBudget:
    if platform not in PLATFORMS:
        raise ValidationFailure(f"Unknown platform '{platform}'")
    limit = PLATFORMS[platform]["char_limit"]
    current = len(content or "") + len(" ".join(hashtags or []))
    return CharacterBudget(
        current=current,
        limit=limit,
        percentage=current / limit * 100,
        is_over_limit=current > limit,
    )

class Composer:
    def __init__(self, global_settings: dict[str, Any] | None = None):
        self.global_settings = {**DEFAULT_GLOBAL_SETTINGS, **(global_settings or {})}
        self.selected: list[str] = []
        self.platform_content: dict[str, dict[str, Any]] = {}
        self.active_platform: str | None = None
        self.ai_generated = False

    def update_global_settings(self, **fields):
        self.global_settings.update(fields)

    def select_platform(self, platform: str):
        if platform not in PLATFORMS:
            raise ValidationFailure(f"Unknown platform '{platform}'")
        if platform in self.selected:
            return
        self.selected.append(platform)
        self.platform_content[platform] = blank_entry()
        if self.active_platform is None:
            self.active_platform = platform

    def deselect_platform(self, platform: str):
        if platform not in self.selected:
            return
        self.selected.remove(platform)
        del self.platform_content[platform]
        if self.active_platform == platform:
            self.active_platform = self.selected[0] if self.selected else None

    def toggle_platform(self, platform: str):
        if platform in self.selected:
            self.deselect_platform(platform)
        else:
            self.select_platform(platform)

    def set_active(self, platform: str):
        self._entry(platform)
        self.active_platform = platform

    def _entry(self, platform: str) -> dict[str, Any]:
        if platform not in self.platform_content:
            raise ValidationFailure(f"Platform '{platform}' is not selected")
        return self.platform_content[platform]

    def update_platform_content(self, platform: str, **fields):
        entry = self._entry(platform)
        for key, value in fields.items():
            if key not in entry:
                raise ValidationFailure(f"Unknown platform field '{key}'")
            entry[key] = value

    def add_hashtag(self, platform: str, hashtag: str):
        entry = self._entry(platform)
        tag = (hashtag or "").strip()
        if not tag or tag == "#":
            return
        entry["hashtags"].append(tag if tag.startswith("#") else f"#{tag}")

    def remove_hashtag(self, platform: str, index: int):
        entry = self._entry(platform)
        entry["hashtags"] = [h for i, h in enumerate(entry["hashtags"]) if i != index]

    def character_budget(self, platform: str) -> CharacterBudget:
        entry = self._entry(platform)
        return character_budget(platform, entry["content"], entry["hashtags"])

    def _generation_params(self) -> dict[str, Any]:
        gs = self.global_settings
        if not (gs.get("topic") or "").strip():
            raise ValidationFailure("A topic is required before generating content")
        return {
            "topic": gs["topic"],
            "content_type": gs.get("contentType") or "promotional",
            "tone": gs.get("tone") or "professional",
            "target_audience": gs.get("targetAudience") or "",
            "brand_context": gs.get("brandContext") or "",
            "instructions": gs.get("additionalInstructions") or "",
            "include_hashtags": bool(gs.get("includeHashtags", True)),
            "include_emojis": bool(gs.get("includeEmojis", True)),
        }

    def generate_active(self, generator) -> dict[str, Any]:
        """One call for the active platform; its entry is replaced only on success."""
        if self.active_platform is None:
            raise ValidationFailure("No platform selected")
        platform = self.active_platform
        result = generator.generate_social_content(platform=platform, **self._generation_params())
        entry = self._entry(platform)
        entry["content"] = result.get("content") or ""
        if result.get("hashtags"):
            entry["hashtags"] = list(result["hashtags"])
        self.ai_generated = True
        log_event("composer_generated", platforms=[platform])
        return result

    def generate_all(self, generator) -> dict[str, Any]:
        """One batched call for every selected platform.

        If the call raises, no entry changes and the error propagates.
        """
        if not self.selected:
            raise ValidationFailure("No platform selected")
        params = self._generation_params()
        results = generator.generate_multi_platform_content(platforms=list(self.selected), **params)
        updates = {
            platform: (result.get("content") or "", list(result.get("hashtags") or []))
            for platform, result in results.items()
            if platform in self.platform_content
        }
        for platform, (content, hashtags) in updates.items():
            entry = self.platform_content[platform]
            entry["content"] = content
            if hashtags:
                entry["hashtags"] = hashtags
        self.ai_generated = True
        log_event("composer_generated", platforms=list(results))
        return results

    def to_post_payload(self, status: str = "draft", author: dict[str, Any] | None = None) -> dict[str, Any]:
        author = author or {}
        gs = self.global_settings
        return {
            "title": gs.get("title") or "",
            "contentType": gs.get("contentType") or "",
            "tone": gs.get("tone"),
            "targetAudience": gs.get("targetAudience"),
            "platformContent": {p: dict(self.platform_content[p]) for p in self.selected},
            "status": status,
            "authorId": author.get("id"),
            "authorName": author.get("name") or author.get("email") or "",
            "scheduledAt": gs.get("scheduledAt"),
            "metadata": {"aiGenerated": self.ai_generated, "template": None},
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "globalSettings": dict(self.global_settings),
            "selectedPlatforms": list(self.selected),
            "platformContent": {p: dict(self.platform_content[p]) for p in self.selected},
            "activePlatform": self.active_platform,
            "aiGenerated": self.ai_generated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Composer":
        composer = cls(data.get("globalSettings"))
        given = data.get("platformContent") or {}
        for platform in data.get("selectedPlatforms") or list(given):
            composer.select_platform(platform)
            entry = given.get(platform) or {}
            composer.platform_content[platform].update(
                {k: v for k, v in entry.items() if k in composer.platform_content[platform]}
            )
        active = data.get("activePlatform")
        if active in composer.platform_content:
            composer.active_platform = active
        composer.ai_generated = bool(data.get("aiGenerated"))
        return composer
