"""Mapper configuration models.

``MapperConfig`` controls how an import map is built from an installed
project and how entry modules are traced through it. ``Environment`` holds
the conditions used to pick between conditional package ``map`` targets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class Environment:
    """Target environment conditions.

    When neither ``node`` is set nor ``browser`` is explicitly disabled the
    environment is treated as a browser.
    """

    browser: Optional[bool] = None
    node: bool = False
    production: bool = False
    dev: Optional[bool] = None
    conditions: Dict[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.node and self.browser is not False:
            self.browser = True
        else:
            self.browser = bool(self.browser)

    @property
    def include_dev(self) -> bool:
        return not (self.production or self.dev is False)

    def as_conditions(self) -> Dict[str, bool]:
        conditions = dict(self.conditions)
        conditions.update(
            browser=bool(self.browser),
            node=self.node,
            production=self.production,
            dev=self.include_dev,
        )
        return conditions

    def matches(self, condition: str) -> bool:
        """Evaluate one condition key; ``~name`` negates, ``default`` always holds."""
        if condition == "default":
            return True
        if condition.startswith("~"):
            return not self.as_conditions().get(condition[1:], False)
        return self.as_conditions().get(condition, False)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Environment":
        data = dict(data or {})
        known = {
            "browser": data.pop("browser", None),
            "node": bool(data.pop("node", False)),
            "production": bool(data.pop("production", False)),
            "dev": data.pop("dev", None),
        }
        extra = data.pop("conditions", None) or {}
        conditions = {str(k): bool(v) for k, v in {**data, **extra}.items()}
        return cls(conditions=conditions, **known)


@dataclass
class MapperConfig:
    """Top-level configuration.

    Attributes:
        packages_dir: Directory, relative to the project root, holding
            installed packages.
        builtins_package: Package serving platform builtin shims.
        builtins_alias: Dependency alias of the builtins package; skipped when
            populating scopes.
        include_builtins: Emit top-level entries for platform builtins.
        relative_fallback: Let unmapped top-level bare specifiers resolve as
            same-directory relative files while tracing.
        env: Target environment conditions.
    """

    packages_dir: str = "jspm_packages"
    builtins_package: str = "npm:@jspm/node-builtins@0.1.2"
    builtins_alias: str = "jspm-node-builtins"
    include_builtins: bool = True
    relative_fallback: bool = False
    env: Environment = field(default_factory=Environment)

    @classmethod
    def default(cls) -> "MapperConfig":
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapperConfig":
        """Build a config from a parsed mapping, keeping defaults for missing keys.

        Accepts either a flat mapping or one nested under an ``importmapper``
        table.
        """
        cfg = cls.default()
        section = data.get("importmapper", data)
        if not isinstance(section, Mapping):
            return cfg

        cfg.packages_dir = str(section.get("packages_dir", cfg.packages_dir)).strip("/")
        cfg.builtins_package = str(section.get("builtins_package", cfg.builtins_package))
        cfg.builtins_alias = str(section.get("builtins_alias", cfg.builtins_alias))
        cfg.include_builtins = bool(section.get("include_builtins", cfg.include_builtins))
        cfg.relative_fallback = bool(section.get("relative_fallback", cfg.relative_fallback))

        env = section.get("env", {}) or {}
        if isinstance(env, Mapping):
            cfg.env = Environment.from_dict(env)
        return cfg


__all__ = ["Environment", "MapperConfig"]
