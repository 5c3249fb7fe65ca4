"""Demo script for taskly-calendar."""

import asyncio
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from taskly_calendar.adapters.csv_adapter import parse
from taskly_calendar.colors import CategoryColorStore
from taskly_calendar.intervals import derive_intervals
from taskly_calendar.storage import MemoryStore
from taskly_calendar.views import ViewType, layout_view


async def main() -> None:
    colors = CategoryColorStore(MemoryStore())
    await colors.load()

    tasks = parse("examples/sample_tasks.csv")
    colors.assign_colors(sorted({task.category_name for task in tasks}))
    intervals = derive_intervals(tasks)

    for day, blocks in layout_view(intervals, ViewType.DAY, date(2025, 3, 10), colors).items():
        print(day.isoformat())
        for block in blocks:
            rect = block.rect
            print(
                f"  {block.interval.start:%H:%M}-{block.interval.end:%H:%M} {block.interval.title:<15}"
                f" col {block.column}/{block.total_columns}"
                f" top={rect.top:.0f} h={rect.height:.0f} left={rect.left:.1f} w={rect.width:.1f} {block.color}"
            )
    await colors.flush()


if __name__ == "__main__":
    asyncio.run(main())
