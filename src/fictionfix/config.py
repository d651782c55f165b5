"""Configuration primitives for the fiction fixer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

HEADING_ROLES = ("auto", "part", "chapter")


@dataclass(slots=True)
class LoggingConfig:
    """Diagnostic trace settings."""

    debug: bool = False


@dataclass(slots=True)
class FeatureConfig:
    """Toggles selecting how aggressively the rewrite pass classifies."""

    convert_endnotes: bool = False
    drop_copyright_blocks: bool = True
    drop_other_books_lists: bool = True
    drop_about_author: bool = True
    drop_frontmatter_marketing: bool = True
    drop_marketing: bool = True
    allow_all_caps_chapters: bool = False
    promote_pov_sections: bool = True
    author_line_allows_by_prefix: bool = False
    drop_images: bool = True
    heading_role: str = "auto"
    title: str = ""

    def __post_init__(self) -> None:
        role = str(self.heading_role or "auto").strip().lower()
        if role not in HEADING_ROLES:
            raise ValueError(f"heading_role must be one of {HEADING_ROLES}, got {self.heading_role!r}")
        self.heading_role = role


@dataclass(slots=True)
class ThresholdConfig:
    """Tuned shape and guard constants."""

    toc_window: int = 800
    toc_break_points: int = 8
    toc_long_paragraph: int = 120
    toc_suppress_max_chars: int = 120
    frontmatter_skip_guard: int = 600
    nav_min_items: int = 4
    part_caps_ratio: float = 0.45
    part_max_words: int = 8
    pov_max_words: int = 2
    pov_max_chars: int = 32
    pov_max_token_chars: int = 12
    scene_break_max_chars: int = 12


@dataclass(slots=True)
class FixConfig:
    """Top-level configuration object."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FixConfig":
        """Build a :class:`FixConfig` from a nested mapping."""

        def build(name: str, typ: Any) -> Any:
            section = data.get(name) or {}
            if not isinstance(section, Mapping):
                raise ValueError(f"Configuration section {name!r} must be a mapping")
            known = {f.name for f in fields(typ)}
            unknown = set(section) - known
            if unknown:
                raise ValueError(f"Unknown keys in {name!r}: {sorted(unknown)}")
            return typ(**dict(section))

        return cls(
            logging=build("logging", LoggingConfig),
            features=build("features", FeatureConfig),
            thresholds=build("thresholds", ThresholdConfig),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the configuration into a serialisable mapping."""

        return {
            "logging": asdict(self.logging),
            "features": asdict(self.features),
            "thresholds": asdict(self.thresholds),
        }

    def with_metadata(self, meta: Mapping[str, Any]) -> "FixConfig":
        """Apply document metadata overrides (Pandoc ``meta`` values).

        Boolean keys accept true/false, yes/no and 1/0; anything else keeps
        the current value.
        """

        features = self.features
        updates: Dict[str, Any] = {}
        for key in _METADATA_BOOL_KEYS:
            if key in meta:
                updates[key] = meta_bool(meta[key], getattr(features, key))
        if "header_h1_role" in meta:
            role = meta_text(meta["header_h1_role"]).strip().lower()
            if role in HEADING_ROLES:
                updates["heading_role"] = role
        if "title" in meta and not features.title:
            updates["title"] = meta_text(meta["title"])

        logging_cfg = self.logging
        if "debug_fiction_filter" in meta:
            logging_cfg = replace(logging_cfg, debug=meta_bool(meta["debug_fiction_filter"], logging_cfg.debug))
        return FixConfig(
            logging=logging_cfg,
            features=replace(features, **updates),
            thresholds=self.thresholds,
        )


_METADATA_BOOL_KEYS = (
    "convert_endnotes",
    "drop_copyright_blocks",
    "drop_other_books_lists",
    "drop_about_author",
    "drop_frontmatter_marketing",
    "drop_marketing",
    "allow_all_caps_chapters",
    "promote_pov_sections",
    "author_line_allows_by_prefix",
    "drop_images",
)

_TRUE = frozenset({"true", "yes", "1"})
_FALSE = frozenset({"false", "no", "0"})


def meta_text(value: Any) -> str:
    """Flatten a metadata value (plain or Pandoc ``{"t", "c"}`` form) to text."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, Mapping):
        tag = value.get("t")
        content = value.get("c")
        if tag in ("Str", "MetaString"):
            return str(content)
        if tag == "MetaBool":
            return "true" if content else "false"
        if tag in ("Space", "SoftBreak", "LineBreak"):
            return " "
        return meta_text(content)
    if isinstance(value, (list, tuple)):
        return "".join(meta_text(item) for item in value)
    return str(value)


def meta_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    text = meta_text(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return default


def load_config(path: Optional[Path | str] = None) -> FixConfig:
    """Load configuration from YAML, defaulting to packaged defaults."""

    if path is None:
        base = Path(__file__).resolve()
        candidates = [
            base.parent.parent.parent / "configs" / "fictionfix.yaml",
            base.parent / "configs" / "fictionfix.yaml",
        ]
        for candidate in candidates:
            if candidate.exists():
                path = candidate
                break
        else:  # pragma: no cover - configuration missing is a deployment error.
            raise FileNotFoundError("Default configuration file could not be located.")
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError("Configuration YAML must produce a mapping")
    return FixConfig.from_dict(data)
