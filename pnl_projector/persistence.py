"""Saving and restoring projection configurations.

Two formats: a portable zip bundle (for download/upload in the app) and a
per-owner directory of JSON records (``ConfigurationStore``).
"""

from __future__ import annotations

import io
import json
import re
import zipfile
from dataclasses import asdict, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from streamlit.logger import get_logger

from pnl_projector.export import monthly_with_break_even
from pnl_projector.presets import DEFAULT_HYBRID_INPUTS, DEFAULT_INPUTS, DEFAULT_MARKETING_METRICS
from pnl_projector.types import (
    FixedCosts,
    GrowthScenario,
    HybridInputs,
    MarketingMetrics,
    ProjectionInputs,
    ProjectionResult,
)

logger = get_logger(__name__)

SCHEMA_VERSION = 1
APP_NAME = "SaaS P&L Projector"
DEFAULT_CONFIG_NAME = "Default Configuration"

Inputs = Union[ProjectionInputs, HybridInputs]


def inputs_to_dict(inputs: Inputs) -> dict[str, Any]:
    data = asdict(inputs)
    for key, value in data.items():
        if isinstance(value, tuple):
            data[key] = list(value)
    return data


def _merge(cls, defaults, data: Mapping[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.debug("Ignoring unknown %s keys: %s", cls.__name__, ", ".join(unknown))
    merged = asdict(defaults)
    merged.update({k: v for k, v in data.items() if k in known})
    return merged


def inputs_from_dict(data: Mapping[str, Any]) -> Inputs:
    """Rebuild inputs from a plain dict, filling anything missing from the defaults."""
    hybrid = data.get("mode") == "hybrid"
    cls, defaults = (HybridInputs, DEFAULT_HYBRID_INPUTS) if hybrid else (ProjectionInputs, DEFAULT_INPUTS)
    merged = _merge(cls, defaults, data)

    merged["fixed_costs"] = FixedCosts(**_merge(FixedCosts, defaults.fixed_costs, merged.get("fixed_costs") or {}))
    metrics = merged.get("marketing_metrics")
    merged["marketing_metrics"] = (
        None if metrics is None else MarketingMetrics(**_merge(MarketingMetrics, DEFAULT_MARKETING_METRICS, metrics))
    )
    if hybrid:
        custom = merged.get("custom_scenario")
        merged["custom_scenario"] = None if custom is None else GrowthScenario(**custom)
        merged["selected_addons"] = tuple(merged["selected_addons"])
    else:
        merged["seasonal_growth"] = tuple(merged["seasonal_growth"])
        merged["enabled_addons"] = tuple(merged["enabled_addons"])
    merged["capital_purchases"] = tuple(merged["capital_purchases"])
    return cls(**merged)


def collect_config_bundle(inputs: Inputs, result: Optional[ProjectionResult] = None) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        meta = {
            "schema_version": SCHEMA_VERSION,
            "app_name": APP_NAME,
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "mode": inputs.mode,
        }
        zf.writestr("metadata.json", json.dumps(meta, indent=2))
        zf.writestr("config.json", json.dumps(inputs_to_dict(inputs), indent=2))

        if result is not None:
            zf.writestr("monthly.csv", monthly_with_break_even(result).to_csv(index=False))

    buf.seek(0)
    return buf.getvalue()


def apply_config_bundle(file_like) -> Inputs:
    with zipfile.ZipFile(file_like, mode="r") as zf:
        names = set(zf.namelist())
        if "metadata.json" in names:
            meta = json.loads(zf.read("metadata.json"))
            if int(meta.get("schema_version", 0)) != SCHEMA_VERSION:
                raise ValueError("Unsupported bundle version. Please update the app.")
        if "config.json" not in names:
            raise ValueError("Bundle does not contain a configuration")
        data = json.loads(zf.read("config.json"))
    if not isinstance(data, dict):
        raise ValueError("Bundle configuration must be a JSON object")
    return inputs_from_dict(data)


def _slug(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    if not slug:
        raise ValueError(f"Invalid name: {value!r}")
    return slug


class ConfigurationStore:
    """Named configurations on disk, one directory per owner.

    Each record is ``<root>/<owner>/<name-slug>.json`` holding the name,
    description, default flag, timestamps and the serialized inputs.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()

    def _owner_dir(self, owner: str) -> Path:
        return self.root / _slug(owner)

    def _path(self, owner: str, name: str) -> Path:
        return self._owner_dir(owner) / f"{_slug(name)}.json"

    def save(self, owner: str, name: str, inputs: Inputs, description: str = "", is_default: bool = False) -> dict:
        path = self._path(owner, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc).isoformat()
        created = now
        if path.exists():
            created = json.loads(path.read_text()).get("created_at", now)
        if is_default:
            for other in self.list(owner):
                if other["is_default"] and other["name"] != name:
                    self._set_default_flag(owner, other["name"], False)
        record = {
            "name": name,
            "description": description,
            "is_default": is_default,
            "created_at": created,
            "updated_at": now,
            "config": inputs_to_dict(inputs),
        }
        path.write_text(json.dumps(record, indent=2))
        logger.info("Saved configuration %r for %s", name, owner)
        return record

    def _set_default_flag(self, owner: str, name: str, flag: bool) -> None:
        path = self._path(owner, name)
        record = json.loads(path.read_text())
        record["is_default"] = flag
        path.write_text(json.dumps(record, indent=2))

    def load(self, owner: str, name: str) -> Inputs:
        path = self._path(owner, name)
        if not path.exists():
            raise KeyError(f"No configuration named {name!r}")
        return inputs_from_dict(json.loads(path.read_text())["config"])

    def list(self, owner: str) -> list[dict]:
        """Records without their config payload, most recently updated first."""
        folder = self._owner_dir(owner)
        if not folder.exists():
            return []
        records = []
        for path in folder.glob("*.json"):
            record = json.loads(path.read_text())
            record.pop("config", None)
            records.append(record)
        return sorted(records, key=lambda r: r.get("updated_at", ""), reverse=True)

    def delete(self, owner: str, name: str) -> bool:
        path = self._path(owner, name)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted configuration %r for %s", name, owner)
        return True

    def default(self, owner: str) -> tuple[str, Inputs]:
        """The owner's default configuration, creating one on first use."""
        records = self.list(owner)
        if not records:
            self.save(owner, DEFAULT_CONFIG_NAME, DEFAULT_INPUTS, "Default SaaS financial configuration", is_default=True)
            return DEFAULT_CONFIG_NAME, DEFAULT_INPUTS
        chosen = next((r for r in records if r.get("is_default")), records[0])
        return chosen["name"], self.load(owner, chosen["name"])
