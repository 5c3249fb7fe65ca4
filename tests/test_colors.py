import asyncio
import json

from taskly_calendar.colors import (
    COLOR_POOL,
    POOL_VERSION,
    STORAGE_KEY,
    VERSION_KEY,
    CategoryColorStore,
    hex_to_rgba,
    stable_hash,
)
from taskly_calendar.storage import MemoryStore


class FailingStore:
    async def get(self, key):
        raise OSError("disk unavailable")

    async def set(self, key, value):
        raise OSError("disk unavailable")


def loaded_store(store=None, **kwargs) -> CategoryColorStore:
    colors = CategoryColorStore(store or MemoryStore(), **kwargs)
    asyncio.run(colors.load())
    return colors


def test_lookup_is_case_and_whitespace_insensitive():
    colors = loaded_store()
    assert colors.get_color("Work") == colors.get_color("work ")
    assert colors.snapshot() == {"work": COLOR_POOL[0]}


def test_distinct_categories_get_distinct_colors():
    colors = loaded_store()
    names = [f"category-{index}" for index in range(len(COLOR_POOL))]
    assigned = [colors.get_color(name) for name in names]
    assert assigned == list(COLOR_POOL)


def test_saturated_palette_falls_back_to_hash():
    colors = loaded_store(palette=("#111111", "#222222"))
    colors.assign_colors(["a", "b"])
    expected = ("#111111", "#222222")[stable_hash("c") % 2]
    assert colors.get_color("C") == expected
    assert colors.get_color("c") == expected


def test_empty_name_uses_first_color_without_assignment():
    colors = loaded_store()
    assert colors.get_color("") == COLOR_POOL[0]
    assert colors.get_color("   ") == COLOR_POOL[0]
    assert colors.get_color(None) == COLOR_POOL[0]
    assert colors.snapshot() == {}


def test_assign_colors_matches_individual_assignment():
    batch = loaded_store()
    batch.assign_colors(["A", "B"])
    single = loaded_store()
    first = single.get_color("A")
    second = single.get_color("B")
    assert (batch.get_color("A"), batch.get_color("B")) == (first, second)


def test_assignments_survive_restart():
    backing = MemoryStore()
    first = loaded_store(backing)
    first.assign_colors(["Work", "Home"])
    second = loaded_store(backing)
    assert second.snapshot() == {"work": COLOR_POOL[0], "home": COLOR_POOL[1]}
    assert second.get_color("home") == COLOR_POOL[1]
    assert second.get_color("health") == COLOR_POOL[2]


def test_version_bump_resets_assignments():
    backing = MemoryStore()
    old = loaded_store(backing)
    old.assign_colors(["Work", "Home"])

    new = loaded_store(backing, pool_version=POOL_VERSION + 1)
    assert new.snapshot() == {}
    assert new.get_color("Home") == COLOR_POOL[0]
    assert backing.data[VERSION_KEY] == str(POOL_VERSION + 1)


def test_load_is_idempotent():
    backing = MemoryStore()
    colors = CategoryColorStore(backing)

    async def scenario():
        await colors.load()
        colors.get_color("work")
        await colors.flush()
        backing.data[STORAGE_KEY] = json.dumps({"other": "#000000"})
        await colors.load()

    asyncio.run(scenario())
    assert colors.loaded
    assert colors.snapshot() == {"work": COLOR_POOL[0]}


def test_writes_inside_event_loop_are_flushed():
    backing = MemoryStore()
    colors = CategoryColorStore(backing)

    async def scenario():
        await colors.load()
        colors.assign_colors(["Work", "Home", "Study"])
        await colors.flush()

    asyncio.run(scenario())
    assert json.loads(backing.data[STORAGE_KEY]) == {
        "home": COLOR_POOL[1],
        "study": COLOR_POOL[2],
        "work": COLOR_POOL[0],
    }


def test_corrupt_persisted_map_is_ignored():
    backing = MemoryStore({VERSION_KEY: str(POOL_VERSION), STORAGE_KEY: "{not json"})
    colors = loaded_store(backing)
    assert colors.snapshot() == {}
    assert colors.get_color("work") == COLOR_POOL[0]


def test_storage_failures_are_swallowed():
    colors = loaded_store(FailingStore())
    assert colors.loaded
    assert colors.get_color("Work") == COLOR_POOL[0]
    assert colors.get_color("work") == COLOR_POOL[0]


def test_colors_assigned_before_load_are_kept():
    backing = MemoryStore({VERSION_KEY: str(POOL_VERSION), STORAGE_KEY: json.dumps({"home": "#34A853"})})
    colors = CategoryColorStore(backing)
    early = colors.get_color("Work")
    asyncio.run(colors.load())
    assert colors.get_color("work") == early
    assert colors.get_color("home") == "#34A853"
    assert json.loads(backing.data[STORAGE_KEY]) == {"home": "#34A853", "work": early}


def test_early_color_taken_by_persisted_entry_is_reassigned():
    backing = MemoryStore({VERSION_KEY: str(POOL_VERSION), STORAGE_KEY: json.dumps({"home": COLOR_POOL[0]})})
    colors = CategoryColorStore(backing)
    assert colors.get_color("Work") == COLOR_POOL[0]
    asyncio.run(colors.load())

    assert colors.snapshot() == {"home": COLOR_POOL[0], "work": COLOR_POOL[1]}
    assert colors.get_color("home") != colors.get_color("work")
    assert json.loads(backing.data[STORAGE_KEY]) == {"home": COLOR_POOL[0], "work": COLOR_POOL[1]}


def test_persisted_color_wins_over_early_assignment():
    backing = MemoryStore({VERSION_KEY: str(POOL_VERSION), STORAGE_KEY: json.dumps({"work": COLOR_POOL[3]})})
    colors = CategoryColorStore(backing)
    colors.get_color("work")
    asyncio.run(colors.load())
    assert colors.get_color("work") == COLOR_POOL[3]


class CountingStore(MemoryStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    async def set(self, key, value):
        self.writes.append(key)
        await super().set(key, value)


def test_assign_colors_writes_once_per_batch():
    backing = CountingStore({VERSION_KEY: str(POOL_VERSION)})
    colors = loaded_store(backing)
    colors.assign_colors(["Work", "Home", "Gym", "work"])

    assert backing.writes.count(STORAGE_KEY) == 1
    assert json.loads(backing.data[STORAGE_KEY]) == {
        "work": COLOR_POOL[0],
        "home": COLOR_POOL[1],
        "gym": COLOR_POOL[2],
    }
    colors.assign_colors(["gym"])
    assert backing.writes.count(STORAGE_KEY) == 1


def test_stable_hash_matches_reference_values():
    assert stable_hash("") == 0
    assert stable_hash("a") == 97
    assert stable_hash("ab") == 97 * 31 + 98
    assert stable_hash("work") >= 0


def test_hex_to_rgba():
    assert hex_to_rgba("#007AFF", 0.12) == "rgba(0, 122, 255, 0.12)"
