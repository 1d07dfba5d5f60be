import logging
from dataclasses import fields
from typing import Any, Dict

import yaml

from .models import CpuConfig, Quirks, SystemConfig

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = ("cpu", "quirks")

# @intent:responsibility YAML形式のシステム構成ファイルを読み込み、SystemConfig に変換します。
class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self.parse(data)

    # @intent:responsibility 読み込み済みの辞書 (またはNone) を検証し、SystemConfig に変換します。
    def parse(self, data: Any) -> SystemConfig:
        if data is None:
            return SystemConfig()
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")

        for key in data:
            if key not in KNOWN_SECTIONS:
                logger.warning("Ignoring unknown configuration key '%s'", key)

        return SystemConfig(
            cpu=self._parse_cpu(self._section(data, "cpu")),
            quirks=self._parse_quirks(self._section(data, "quirks")),
        )

    def _section(self, data: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = data.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ValueError(f"Section '{name}' must be a mapping")
        return section

    def _parse_cpu(self, data: Dict[str, Any]) -> CpuConfig:
        self._warn_unknown("cpu", data, CpuConfig)
        defaults = CpuConfig()
        cycles = self._parse_int(data.get("cycles_per_second", defaults.cycles_per_second))
        timer_hz = self._parse_int(data.get("timer_hz", defaults.timer_hz))
        if cycles <= 0:
            raise ValueError(f"cycles_per_second must be positive: {cycles}")
        if timer_hz <= 0:
            raise ValueError(f"timer_hz must be positive: {timer_hz}")
        seed = data.get("seed")
        return CpuConfig(
            cycles_per_second=cycles,
            timer_hz=timer_hz,
            seed=None if seed is None else self._parse_int(seed),
        )

    def _parse_quirks(self, data: Dict[str, Any]) -> Quirks:
        self._warn_unknown("quirks", data, Quirks)
        values = {}
        for f in fields(Quirks):
            if f.name in data:
                value = data[f.name]
                if not isinstance(value, bool):
                    raise ValueError(f"Quirk '{f.name}' must be true or false: {value!r}")
                values[f.name] = value
        return Quirks(**values)

    def _warn_unknown(self, section: str, data: Dict[str, Any], model) -> None:
        known = {f.name for f in fields(model)}
        for key in data:
            if key not in known:
                logger.warning("Ignoring unknown key '%s' in section '%s'", key, section)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                if value.lower().startswith("0x"):
                    return int(value, 16)
                return int(value)
            except ValueError:
                raise ValueError(f"Invalid integer format: {value}") from None
        raise ValueError(f"Invalid integer format: {value}")
