"""
Headless garden: a grid of cells holding planted flowers, with no rendering attached.

This is the world the skills mutate.  Every mutating call returns a :class:`WorldResult` instead
of raising, so a skill can hand the outcome straight back to the orchestrator.
"""

import logging
import time
import uuid
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from verdant.world.catalog import (
    DEFAULT_CATALOG,
    VarietyCatalog,
)

logger = logging.getLogger(__name__)


class Flower(BaseModel):
    """A single planted flower."""

    id: str = Field(default_factory=lambda: f"flower_{uuid.uuid4().hex[:12]}")
    variety_key: str
    col: int
    row: int
    planted_at: float


class WorldResult(BaseModel):
    """Success payload or typed failure of a world mutation."""

    success: bool
    message: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **payload: Any) -> "WorldResult":
        return cls(success=True, message=message, payload=payload)

    @classmethod
    def fail(cls, message: str, **payload: Any) -> "WorldResult":
        return cls(success=False, message=message, payload=payload)


class Cell:
    """One plot of soil."""

    def __init__(self, col: int, row: int):
        self.col = col
        self.row = row
        self.flowers: List[Flower] = []

    @property
    def key(self) -> str:
        return f"{self.col},{self.row}"

    def is_empty(self) -> bool:
        return not self.flowers

    def clear(self) -> List[Flower]:
        removed, self.flowers = self.flowers, []
        return removed

    def __repr__(self) -> str:
        return f"Cell({self.col}, {self.row}, flowers={len(self.flowers)})"


class Grid:
    """Row-major grid of cells."""

    def __init__(self, cols: int, rows: int):
        if cols < 1 or rows < 1:
            raise ValueError(f"grid must be at least 1x1, got {cols}x{rows}")
        self.cols = cols
        self.rows = rows
        self._cells: Dict[tuple[int, int], Cell] = {
            (col, row): Cell(col, row) for row in range(rows) for col in range(cols)
        }

    def __iter__(self) -> Iterator[Cell]:
        for row in range(self.rows):
            for col in range(self.cols):
                yield self._cells[(col, row)]

    def __len__(self) -> int:
        return self.cols * self.rows

    def get_cell(self, col: int, row: int) -> Optional[Cell]:
        return self._cells.get((col, row))

    def find_empty_cell(self) -> Optional[Cell]:
        """First empty cell in row-major order."""
        return next((cell for cell in self if cell.is_empty()), None)

    def empty_cells(self) -> List[Cell]:
        return [cell for cell in self if cell.is_empty()]

    def resize(self, cols: int, rows: int) -> List[Flower]:
        """
        Change the grid dimensions in place.

        Cells inside the new bounds keep their flowers.  Returns the flowers that fell outside
        and were dropped.
        """
        if cols < 1 or rows < 1:
            raise ValueError(f"grid must be at least 1x1, got {cols}x{rows}")
        dropped: List[Flower] = []
        cells: Dict[tuple[int, int], Cell] = {}
        for row in range(rows):
            for col in range(cols):
                cells[(col, row)] = self._cells.get((col, row)) or Cell(col, row)
        for pos, cell in self._cells.items():
            if pos not in cells:
                dropped.extend(cell.flowers)
        self._cells = cells
        self.cols = cols
        self.rows = rows
        return dropped


class Garden:
    """
    World mutator and source of truth for the garden.

    Parameters
    ----------
    cols, rows:
        Initial grid size.
    catalog:
        Variety catalog; plant requests for keys not in it are rejected.
    growth_seconds:
        Time from planting until a flower can be harvested.
    gold_per_flower:
        Gold credited per harvested flower.
    clock:
        Time source, injectable for tests.
    """

    def __init__(
        self,
        cols: int = 3,
        rows: int = 2,
        catalog: VarietyCatalog | None = None,
        growth_seconds: float = 10.0,
        gold_per_flower: int = 10,
        gold: int = 0,
        clock: Callable[[], float] = time.time,
    ):
        self.grid = Grid(cols, rows)
        self.catalog = DEFAULT_CATALOG if catalog is None else catalog
        self.growth_seconds = growth_seconds
        self.gold_per_flower = gold_per_flower
        self.gold = gold
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    @property
    def flowers(self) -> List[Flower]:
        return [flower for cell in self.grid for flower in cell.flowers]

    def get_flower(self, flower_id: str) -> Optional[Flower]:
        return next((f for f in self.flowers if f.id == flower_id), None)

    def growth_percent(self, flower: Flower) -> int:
        if self.growth_seconds <= 0:
            return 100
        elapsed = self._clock() - flower.planted_at
        return max(0, min(100, int(elapsed / self.growth_seconds * 100)))

    def is_harvestable(self, flower: Flower) -> bool:
        return self._clock() - flower.planted_at >= self.growth_seconds

    def find_empty_cell(self) -> Optional[Cell]:
        return self.grid.find_empty_cell()

    def empty_cells(self) -> List[Cell]:
        return self.grid.empty_cells()

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #
    def plant(self, col: int, row: int, variety_key: str, count: int = 1) -> WorldResult:
        """Plant *count* flowers of *variety_key* into the cell at (*col*, *row*)."""
        if variety_key not in self.catalog:
            return WorldResult.fail(f'unknown variety "{variety_key}"', reason="unknown_variety")
        cell = self.grid.get_cell(col, row)
        if cell is None:
            return WorldResult.fail(f"no cell at ({col}, {row})", reason="no_cell")
        if not cell.is_empty():
            return WorldResult.fail(f"cell ({col}, {row}) is occupied", reason="occupied")

        now = self._clock()
        planted = [
            Flower(variety_key=variety_key, col=col, row=row, planted_at=now) for _ in range(count)
        ]
        cell.flowers.extend(planted)
        logger.debug("Planted %d x %s at (%d, %d)", count, variety_key, col, row)
        return WorldResult.ok(
            f"planted {count} {variety_key} at ({col}, {row})",
            flowers=[f.id for f in planted],
            col=col,
            row=row,
        )

    def remove(self, flower_id: str) -> WorldResult:
        """Remove a single flower without crediting gold."""
        flower = self.get_flower(flower_id)
        if flower is None:
            return WorldResult.fail(f"no flower with id {flower_id}", reason="not_found")
        cell = self.grid.get_cell(flower.col, flower.row)
        if cell is not None:
            cell.flowers = [f for f in cell.flowers if f.id != flower_id]
        return WorldResult.ok(f"removed {flower_id}", flower_id=flower_id)

    def harvest(self, flower_id: str) -> WorldResult:
        """Harvest the cell holding *flower_id*; every flower in it is picked."""
        flower = self.get_flower(flower_id)
        if flower is None:
            return WorldResult.fail(f"no flower with id {flower_id}", reason="not_found")
        if not self.is_harvestable(flower):
            return WorldResult.fail(
                f"{flower_id} is still growing ({self.growth_percent(flower)}%)",
                reason="not_mature",
            )
        cell = self.grid.get_cell(flower.col, flower.row)
        picked = cell.clear() if cell is not None else [flower]
        earned = len(picked) * self.gold_per_flower
        self.gold += earned
        logger.debug("Harvested %d flowers from (%d, %d)", len(picked), flower.col, flower.row)
        return WorldResult.ok(
            f"harvested {len(picked)} flowers", gold=earned, count=len(picked), total_gold=self.gold
        )

    def resize(self, cols: int, rows: int) -> WorldResult:
        """Resize the grid, keeping flowers whose cells remain in bounds."""
        try:
            dropped = self.grid.resize(cols, rows)
        except ValueError as exc:
            return WorldResult.fail(str(exc), reason="invalid_size")
        return WorldResult.ok(
            f"garden is now {cols} x {rows}",
            new_cols=cols,
            new_rows=rows,
            preserved_count=len(self.flowers),
            dropped_count=len(dropped),
        )
