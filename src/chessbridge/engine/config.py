"""Engine tuning: difficulty presets and UCI option rendering."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any

THREADS_RANGE = (1, 128)
HASH_RANGE_MB = (1, 16384)
SKILL_RANGE = (0, 20)
DEPTH_RANGE = (1, 100)
MOVE_TIME_RANGE_MS = (100, 60000)
MULTI_PV_RANGE = (1, 10)


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, int(value)))


def _default_threads() -> int:
    return max(1, (os.cpu_count() or 1) // 2)


class Preset(Enum):
    """Difficulty presets. Values are ``(skill, depth, move_time_ms)``."""

    EASY = (5, 5, 500)
    MEDIUM = (10, 10, 1000)
    HARD = (20, 20, 2000)
    CUSTOM = (20, 20, 1000)

    @property
    def skill_level(self) -> int:
        return self.value[0]

    @property
    def depth_limit(self) -> int:
        return self.value[1]

    @property
    def move_time_ms(self) -> int:
        return self.value[2]

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


@dataclass
class EngineConfiguration:
    """Engine tuning consumed by :class:`~chessbridge.engine.client.EngineClient`.

    Setting any preset-controlled field (skill, depth, move time) or a
    resource field (threads, hash) clamps the value into range and switches
    the preset to :attr:`Preset.CUSTOM`. ``multi_pv`` and ``ponder`` leave the
    preset alone.
    """

    _preset: Preset = Preset.MEDIUM
    _threads: int = field(default_factory=_default_threads)
    _hash_mb: int = 256
    _skill_level: int = Preset.MEDIUM.skill_level
    _depth_limit: int = Preset.MEDIUM.depth_limit
    _move_time_ms: int = Preset.MEDIUM.move_time_ms
    _multi_pv: int = 1
    ponder: bool = False

    # ── Presets ──────────────────────────────────────────────────────────

    @property
    def preset(self) -> Preset:
        return self._preset

    def apply_preset(self, preset: Preset) -> None:
        """Switch preset; non-custom presets overwrite skill/depth/time."""
        self._preset = preset
        if preset != Preset.CUSTOM:
            self._skill_level, self._depth_limit, self._move_time_ms = preset.value

    # ── Clamped fields ───────────────────────────────────────────────────

    @property
    def threads(self) -> int:
        return self._threads

    @threads.setter
    def threads(self, value: int) -> None:
        self._threads = _clamp(value, THREADS_RANGE)
        self._preset = Preset.CUSTOM

    @property
    def hash_mb(self) -> int:
        return self._hash_mb

    @hash_mb.setter
    def hash_mb(self, value: int) -> None:
        self._hash_mb = _clamp(value, HASH_RANGE_MB)
        self._preset = Preset.CUSTOM

    @property
    def skill_level(self) -> int:
        return self._skill_level

    @skill_level.setter
    def skill_level(self, value: int) -> None:
        self._skill_level = _clamp(value, SKILL_RANGE)
        self._preset = Preset.CUSTOM

    @property
    def depth_limit(self) -> int:
        return self._depth_limit

    @depth_limit.setter
    def depth_limit(self, value: int) -> None:
        self._depth_limit = _clamp(value, DEPTH_RANGE)
        self._preset = Preset.CUSTOM

    @property
    def move_time_ms(self) -> int:
        return self._move_time_ms

    @move_time_ms.setter
    def move_time_ms(self, value: int) -> None:
        self._move_time_ms = _clamp(value, MOVE_TIME_RANGE_MS)
        self._preset = Preset.CUSTOM

    @property
    def multi_pv(self) -> int:
        return self._multi_pv

    @multi_pv.setter
    def multi_pv(self, value: int) -> None:
        self._multi_pv = _clamp(value, MULTI_PV_RANGE)

    # ── UCI rendering ────────────────────────────────────────────────────

    def uci_options(self) -> list[str]:
        """``setoption`` commands applying this configuration."""
        return [
            f"setoption name Threads value {self._threads}",
            f"setoption name Hash value {self._hash_mb}",
            f"setoption name Skill Level value {self._skill_level}",
            f"setoption name MultiPV value {self._multi_pv}",
            f"setoption name Ponder value {'true' if self.ponder else 'false'}",
        ]

    def go_command(self) -> str:
        return f"go depth {self._depth_limit} movetime {self._move_time_ms}"

    def summary(self) -> str:
        return (
            f"{self._preset.display_name}: skill {self._skill_level}, "
            f"depth {self._depth_limit}, {self._move_time_ms} ms, "
            f"{self._threads} threads, {self._hash_mb} MB hash"
        )

    # ── Copy / persistence helpers ───────────────────────────────────────

    def copy(self) -> EngineConfiguration:
        return EngineConfiguration(
            **{f.name: getattr(self, f.name) for f in fields(self)}
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "preset": self._preset.name,
            "threads": self._threads,
            "hash_mb": self._hash_mb,
            "skill_level": self._skill_level,
            "depth_limit": self._depth_limit,
            "move_time_ms": self._move_time_ms,
            "multi_pv": self._multi_pv,
            "ponder": self.ponder,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfiguration:
        """Inverse of :meth:`to_dict`. Missing keys keep their defaults."""
        cfg = cls()
        if "threads" in data:
            cfg.threads = data["threads"]
        if "hash_mb" in data:
            cfg.hash_mb = data["hash_mb"]
        if "skill_level" in data:
            cfg.skill_level = data["skill_level"]
        if "depth_limit" in data:
            cfg.depth_limit = data["depth_limit"]
        if "move_time_ms" in data:
            cfg.move_time_ms = data["move_time_ms"]
        if "multi_pv" in data:
            cfg.multi_pv = data["multi_pv"]
        cfg.ponder = bool(data.get("ponder", False))

        # The setters above force CUSTOM; restore the stored preset last.
        preset_name = data.get("preset", Preset.MEDIUM.name)
        try:
            preset = Preset[preset_name]
        except KeyError:
            raise ValueError(f"Unknown engine preset: {preset_name!r}") from None
        cfg._preset = preset
        return cfg
