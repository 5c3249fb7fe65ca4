"""Stable category colors backed by a key-value store."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Iterable, Optional, Sequence

from taskly_calendar.storage import KeyValueStore

logger = logging.getLogger(__name__)

COLOR_POOL = (
    "#007AFF",  # app blue
    "#34A853",
    "#EA4335",
    "#A142F4",
    "#F4A125",
    "#00ACC1",
    "#E91E63",
    "#795548",
    "#607D8B",
    "#FF7043",
    "#66BB6A",
    "#AB47BC",
)

# Bump whenever COLOR_POOL changes so stored assignments are re-derived.
POOL_VERSION = 1

STORAGE_KEY = "@calendar20_category_colors"
VERSION_KEY = "@calendar20_category_colors_version"


def normalize_category(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def stable_hash(key: str) -> int:
    """Non-negative 31-multiplier hash over UTF-16 code units, wrapped to int32."""

    encoded = key.encode("utf-16-le")
    value = 0
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def hex_to_rgba(color: str, alpha: float) -> str:
    """Convert `#RRGGBB` to an `rgba(...)` string with the given alpha."""

    red = int(color[1:3], 16)
    green = int(color[3:5], 16)
    blue = int(color[5:7], 16)
    return f"rgba({red}, {green}, {blue}, {alpha})"


def _decode_colors(raw: Optional[str]) -> dict[str, str]:
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except ValueError:
        logger.warning("discarding unreadable category color map")
        return {}
    if not isinstance(payload, dict):
        logger.warning("discarding category color map of type %s", type(payload).__name__)
        return {}
    return {str(key): value for key, value in payload.items() if isinstance(value, str)}


class CategoryColorStore:
    """Assigns each category a color that stays stable across restarts.

    One instance is expected per process and is handed to whatever renders the
    calendar. Lookups and writes happen on a single thread; writes to the
    backing store are best-effort and never raise.
    """

    def __init__(
        self,
        store: KeyValueStore,
        palette: Sequence[str] = COLOR_POOL,
        pool_version: int = POOL_VERSION,
    ) -> None:
        if not palette:
            raise ValueError("palette must contain at least one color")
        self._store = store
        self._palette = tuple(palette)
        self._pool_version = int(pool_version)
        self._colors: dict[str, str] = {}
        self._loaded = False
        self._dirty = False
        self._writer: Optional[asyncio.Task] = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def palette(self) -> tuple[str, ...]:
        return self._palette

    def snapshot(self) -> dict[str, str]:
        return dict(self._colors)

    async def load(self) -> None:
        """Restore persisted assignments; later calls are no-ops."""

        if self._loaded:
            return

        persisted: dict[str, str] = {}
        try:
            stored_version = await self._store.get(VERSION_KEY)
            if stored_version != str(self._pool_version):
                logger.info(
                    "category color pool version changed (%s -> %s), resetting assignments",
                    stored_version,
                    self._pool_version,
                )
                await self._store.set(VERSION_KEY, str(self._pool_version))
                await self._store.set(STORAGE_KEY, json.dumps({}))
            else:
                persisted = _decode_colors(await self._store.get(STORAGE_KEY))
        except Exception:  # noqa: BLE001
            logger.warning("could not load category colors", exc_info=True)
            persisted = {}

        # Persisted entries win; early colors are kept unless a persisted entry already holds them.
        early = self._colors
        self._colors = persisted
        for key, color in early.items():
            if key in self._colors:
                continue
            if color in self._colors.values():
                color = self._pick_color(key)
            self._colors[key] = color
            self._dirty = True
        self._loaded = True
        logger.debug("loaded %d category colors", len(self._colors))
        if self._dirty:
            await self._drain()

    def get_color(self, category_name: Optional[str]) -> str:
        """Return the color of a category, assigning one on first sight."""

        key = normalize_category(category_name)
        if not key:
            return self._palette[0]

        color = self._colors.get(key)
        if color is not None:
            return color

        color = self._assign(key)
        self._schedule_save()
        return color

    def assign_colors(self, category_names: Iterable[Optional[str]]) -> None:
        """Pre-warm the map; new assignments are persisted in one write."""

        added = False
        for name in category_names:
            key = normalize_category(name)
            if key and key not in self._colors:
                self._assign(key)
                added = True
        if added:
            self._schedule_save()

    def _pick_color(self, key: str) -> str:
        used = set(self._colors.values())
        color = next((candidate for candidate in self._palette if candidate not in used), None)
        if color is None:
            color = self._palette[stable_hash(key) % len(self._palette)]
        return color

    def _assign(self, key: str) -> str:
        color = self._pick_color(key)
        self._colors[key] = color
        return color

    async def flush(self) -> None:
        """Wait for scheduled writes to reach the backing store."""

        if self._writer is not None and not self._writer.done():
            await self._writer
        elif self._dirty and self._loaded:
            await self._drain()

    def _schedule_save(self) -> None:
        self._dirty = True
        if not self._loaded:
            # Written once load() has merged the persisted map.
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._drain())
            return
        if self._writer is None or self._writer.done():
            self._writer = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while self._dirty:
            self._dirty = False
            payload = json.dumps(self._colors, sort_keys=True)
            try:
                await self._store.set(STORAGE_KEY, payload)
            except Exception:  # noqa: BLE001
                logger.warning("could not persist category colors", exc_info=True)
