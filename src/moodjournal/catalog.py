"""Static theme and skin-pack catalogs. Unlock state lives in entitlements.py."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

DEFAULT_MOOD_EMOJI = {
    1: "😢",
    2: "😕",
    3: "😐",
    4: "😊",
    5: "😄",
}


class CatalogKind(Enum):
    THEME = "theme"
    SKIN_PACK = "skin_pack"


@dataclass(frozen=True)
class ThemeDescriptor:
    id: str
    name: str
    description: str
    primary_color: str
    preview_image: str
    price: int = 0
    background_image: str | None = None

    @property
    def is_premium(self) -> bool:
        return self.price > 0

    @property
    def price_label(self) -> str | None:
        return f"¥{self.price}" if self.price else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "primaryColor": self.primary_color,
            "backgroundImage": self.background_image,
            "price": self.price,
            "previewImage": self.preview_image,
        }


@dataclass(frozen=True)
class SkinPackDescriptor:
    id: str
    name: str
    description: str
    category: str
    preview_image: str
    mood_images: dict[int, str] = field(default_factory=dict)
    is_premium: bool = False
    price_label: str | None = None

    def mood_image(self, level: int) -> str:
        return self.mood_images.get(level, f"{self.id}_mood_{level}")

    def mood_emoji(self, level: int) -> str:
        return self.mood_images.get(level, DEFAULT_MOOD_EMOJI.get(level, "😐"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "moodImages": {str(k): v for k, v in self.mood_images.items()},
            "previewImage": self.preview_image,
            "isPremium": self.is_premium,
            "price": self.price_label,
        }


Descriptor = Union[ThemeDescriptor, SkinPackDescriptor]


THEMES: tuple[ThemeDescriptor, ...] = (
    ThemeDescriptor(
        id="default",
        name="清新绿意",
        description="经典的浅墨绿色主题，清新自然",
        primary_color="#66B399",
        preview_image="theme_default",
    ),
    ThemeDescriptor(
        id="warm_orange",
        name="温暖夕阳",
        description="温暖的橙色主题，如夕阳般舒适",
        primary_color="#E67E22",
        preview_image="theme_orange",
    ),
    ThemeDescriptor(
        id="calm_blue",
        name="宁静海洋",
        description="宁静的蓝色主题，如大海般平静",
        primary_color="#3498DB",
        preview_image="theme_blue",
    ),
    ThemeDescriptor(
        id="elegant_purple",
        name="优雅薰衣草",
        description="优雅的紫色主题，如薰衣草般迷人",
        primary_color="#9B59B6",
        preview_image="theme_purple",
    ),
    ThemeDescriptor(
        id="vibrant_pink",
        name="活力樱花",
        description="活力的粉色主题，如樱花般浪漫",
        primary_color="#E91E63",
        preview_image="theme_pink",
    ),
    ThemeDescriptor(
        id="dark_theme",
        name="深邃夜空",
        description="深色主题，护眼模式",
        primary_color="#2C3E50",
        preview_image="theme_dark",
    ),
)

SKIN_PACKS: tuple[SkinPackDescriptor, ...] = (
    SkinPackDescriptor(
        id="default_emoji",
        name="经典表情",
        description="传统的表情符号，简洁明了",
        category="表情",
        preview_image="pack_default_preview",
        mood_images={1: "😢", 2: "😕", 3: "😐", 4: "😊", 5: "😄"},
    ),
    SkinPackDescriptor(
        id="cute_animals",
        name="可爱动物",
        description="萌萌的小动物陪您记录心情",
        category="动物",
        preview_image="pack_animals_preview",
        mood_images={1: "😿", 2: "🐶", 3: "🐼", 4: "🐰", 5: "🦊"},
    ),
    SkinPackDescriptor(
        id="nature_scenes",
        name="自然风光",
        description="美丽的自然景色，感受大自然的力量",
        category="自然",
        preview_image="pack_nature_preview",
        mood_images={1: "⛈️", 2: "☁️", 3: "🌊", 4: "☀️", 5: "🌈"},
        is_premium=True,
        price_label="¥6",
    ),
    SkinPackDescriptor(
        id="food_mood",
        name="美食心情",
        description="用美食来表达您的心情",
        category="美食",
        preview_image="pack_food_preview",
        mood_images={1: "🥒", 2: "🍋", 3: "🍞", 4: "🍰", 5: "🍭"},
        is_premium=True,
        price_label="¥6",
    ),
    SkinPackDescriptor(
        id="flowers",
        name="花朵物语",
        description="用花朵的美丽表达内心的感受",
        category="自然",
        preview_image="pack_flowers_preview",
        mood_images={1: "🥀", 2: "🌹", 3: "🌼", 4: "🌻", 5: "🌺"},
        is_premium=True,
        price_label="¥8",
    ),
    SkinPackDescriptor(
        id="weather",
        name="天气心情",
        description="像天气一样变化的心情",
        category="天气",
        preview_image="pack_weather_preview",
        mood_images={1: "⛈️", 2: "🌧️", 3: "☁️", 4: "⛅", 5: "☀️"},
        is_premium=True,
        price_label="¥6",
    ),
)

FREE_THEMES = frozenset({"default", "warm_orange", "calm_blue"})
FREE_SKIN_PACKS = frozenset({"default_emoji", "cute_animals"})

SKIN_PACK_CATEGORY_ALL = "全部"
SKIN_PACK_CATEGORIES = (SKIN_PACK_CATEGORY_ALL, "表情", "动物", "自然", "美食", "天气")


def descriptors(kind: CatalogKind) -> tuple[Descriptor, ...]:
    if kind is CatalogKind.THEME:
        return THEMES
    return SKIN_PACKS


def free_tier(kind: CatalogKind) -> frozenset[str]:
    if kind is CatalogKind.THEME:
        return FREE_THEMES
    return FREE_SKIN_PACKS


def lookup(kind: CatalogKind, item_id: str) -> Descriptor | None:
    for d in descriptors(kind):
        if d.id == item_id:
            return d
    return None
