"""Configuration management for kg-resolve using pydantic-settings.

Settings priority (highest to lowest):
1. CLI flags (applied after ResolveConfig creation)
2. Environment variables (KGR_* prefix)
3. .env file
4. kgr.yaml project config
5. Default values

Nested models use a double underscore in environment variables, e.g.
``KGR_THRESHOLDS__HIGH=0.9``.
"""

import logging
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from kg_resolve.graph.models import DEFAULT_EXCLUDED_LABELS
from kg_resolve.resolve.blocking import BLOCKERS
from kg_resolve.resolve.models import MERGE_STRATEGIES, AttributeWeights, MergeStrategy, Thresholds

logger = logging.getLogger(__name__)

PROJECT_FILE = "kgr.yaml"

# Map kgr.yaml keys to ResolveConfig field names
_YAML_TO_FIELD = {
    "graph": "graph_path",
    "audit": "audit_path",
    "thresholds": "thresholds",
    "weights": "weights",
    "auto_min_score": "auto_min_score",
    "max_merges": "max_merges",
    "merge_strategy": "merge_strategy",
    "blocking": "blocking",
    "excluded_node_labels": "excluded_node_labels",
}


class _ProjectYamlSource(PydanticBaseSettingsSource):
    """Read project config from kgr.yaml (lower priority than env vars)."""

    def get_field_value(self, field, field_name):  # type: ignore[override]
        return None, field_name, False

    def __call__(self) -> dict:
        project_file = Path(PROJECT_FILE)
        if not project_file.exists():
            return {}

        raw = yaml.safe_load(project_file.read_text()) or {}
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring {PROJECT_FILE}: expected a mapping at top level")
            return {}

        result: dict = {}
        for yaml_key, field_name in _YAML_TO_FIELD.items():
            if yaml_key in raw:
                result[field_name] = raw[yaml_key]
        return result


class ResolveConfig(BaseSettings):
    """Settings for kg-resolve loaded from environment, .env and kgr.yaml.

    Empty string values in environment variables are treated as unset.

    Example:
        >>> config = ResolveConfig()
        >>> config.thresholds.high
        0.85
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="KGR_",
        env_nested_delimiter="__",
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            _ProjectYamlSource(settings_cls),
            file_secret_settings,
        )

    graph_path: Path = Field(
        default=Path("graph_data.json"),
        description="JSON file holding the property graph",
    )

    audit_path: Path = Field(
        default=Path("merge_audit.yaml"),
        description="YAML file holding the merge audit trail",
    )

    thresholds: Thresholds = Field(
        default_factory=Thresholds,
        description="Score bands for candidate confidence levels",
    )

    weights: AttributeWeights = Field(
        default_factory=AttributeWeights,
        description="Per-attribute weights for entity similarity",
    )

    auto_min_score: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Minimum score for auto-resolve to merge a pair",
    )

    max_merges: int = Field(
        default=50,
        ge=1,
        description="Upper bound on merges per auto-resolve run",
    )

    merge_strategy: MergeStrategy = Field(
        default="prefer_target",
        description=f"Property conflict policy: {', '.join(MERGE_STRATEGIES)}",
    )

    blocking: str = Field(
        default="prefix",
        description="Blocking predicate used before pair scoring",
    )

    excluded_node_labels: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_LABELS),
        description="Structural node labels never considered for resolution",
    )

    @field_validator("blocking")
    @classmethod
    def _check_blocking(cls, v: str) -> str:
        if v not in BLOCKERS:
            raise ValueError(
                f"Unknown blocking scheme: {v!r}. Choose from: {', '.join(sorted(BLOCKERS))}"
            )
        return v
