"""Configuration management for ts-unused-finder.

Loads `tuc.config.json` (or an explicit JSON file), fills in defaults and
reads the environment (including a `.env` file) for overrides.
"""
from dataclasses import dataclass, field, fields
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

__version__ = "1.0.0"

CONFIG_FILE_NAME = "tuc.config.json"
CONFIG_ENV_VAR = "TUC_CONFIG"
JOBS_ENV_VAR = "TUC_JOBS"

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_DIRS = ["src"]
DEFAULT_EXTENSIONS = [".ts", ".tsx"]
DEFAULT_EXCLUDE_PATTERNS = [
    "node_modules",
    ".next",
    "dist",
    ".turbo",
    "build",
    "out",
    "__tests__",
    "*.test.ts",
    "*.test.tsx",
    "*.test.js",
    "*.test.jsx",
    "*.spec.ts",
    "*.spec.tsx",
    "*.spec.js",
    "*.spec.jsx",
    "*.stories.ts",
    "*.stories.tsx",
    "*.stories.js",
    "*.stories.jsx",
    "*.d.ts",
    ".git",
    ".vscode",
    ".idea",
    "coverage",
    ".nyc_output",
    "*.min.js",
    "*.min.css",
]
LOG_LEVELS = ("error", "warn", "info", "debug")
TYPE_USAGE_POLICIES = ("any", "live")


class ConfigurationError(ValueError):
    """Invalid or unreadable configuration. Raised before any file is scanned."""


def _expect(value: Any, kind: type, key: str) -> Any:
    # bool is an int subclass; "max_unused_elements": true is still an error
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigurationError(f"'{key}' must be of type {kind.__name__}, got {type(value).__name__}")
    return value


def _string_list(value: Any, key: str) -> List[str]:
    _expect(value, list, key)
    for item in value:
        _expect(item, str, f"{key}[]")
    return list(value)


@dataclass
class DetectionTypes:
    components: bool = True
    types: bool = True
    interfaces: bool = True
    functions: bool = True
    variables: bool = True
    enums: bool = True

    @classmethod
    def from_dict(cls, data: Any) -> "DetectionTypes":
        _expect(data, dict, "detection_types")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown detection type(s): {', '.join(unknown)}")
        return cls(**{key: _expect(value, bool, f"detection_types.{key}") for key, value in data.items()})

    def enabled_categories(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def to_dict(self) -> Dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class CiConfig:
    max_unused_elements: int = 5
    fail_on_exceed: bool = True
    log_level: str = "warn"

    @classmethod
    def from_dict(cls, data: Any) -> "CiConfig":
        _expect(data, dict, "ci")
        ci = cls()
        if "max_unused_elements" in data:
            ci.max_unused_elements = _expect(data["max_unused_elements"], int, "ci.max_unused_elements")
            if ci.max_unused_elements < 0:
                raise ConfigurationError("'ci.max_unused_elements' must not be negative")
        if "fail_on_exceed" in data:
            ci.fail_on_exceed = _expect(data["fail_on_exceed"], bool, "ci.fail_on_exceed")
        if "log_level" in data:
            ci.log_level = _expect(data["log_level"], str, "ci.log_level").lower()
            if ci.log_level not in LOG_LEVELS:
                raise ConfigurationError(
                    f"'ci.log_level' must be one of {', '.join(LOG_LEVELS)}, got '{ci.log_level}'"
                )
        return ci

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_unused_elements": self.max_unused_elements,
            "fail_on_exceed": self.fail_on_exceed,
            "log_level": self.log_level,
        }


@dataclass
class Config:
    """Complete configuration of one run."""
    search_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_DIRS))
    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    detection_types: DetectionTypes = field(default_factory=DetectionTypes)
    entry_points: List[str] = field(default_factory=list)
    path_aliases: Dict[str, List[str]] = field(default_factory=dict)
    type_usage_policy: str = "any"
    ci: CiConfig = field(default_factory=CiConfig)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        """Build a Config from parsed JSON, defaults for every missing key.

        Raises:
            ConfigurationError: On wrong types or unknown values
        """
        _expect(data, dict, "configuration")
        config = cls()
        for key in ("search_dirs", "exclude_patterns", "extensions", "entry_points"):
            if key in data:
                setattr(config, key, _string_list(data[key], key))
        if "detection_types" in data:
            config.detection_types = DetectionTypes.from_dict(data["detection_types"])
        if "ci" in data:
            config.ci = CiConfig.from_dict(data["ci"])
        if "path_aliases" in data:
            aliases = _expect(data["path_aliases"], dict, "path_aliases")
            config.path_aliases = {
                alias: [targets] if isinstance(targets, str) else _string_list(targets, f"path_aliases.{alias}")
                for alias, targets in aliases.items()
            }
        if "type_usage_policy" in data:
            policy = _expect(data["type_usage_policy"], str, "type_usage_policy")
            if policy not in TYPE_USAGE_POLICIES:
                raise ConfigurationError(
                    f"'type_usage_policy' must be one of {', '.join(TYPE_USAGE_POLICIES)}, got '{policy}'"
                )
            config.type_usage_policy = policy
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_dirs": list(self.search_dirs),
            "exclude_patterns": list(self.exclude_patterns),
            "extensions": list(self.extensions),
            "detection_types": self.detection_types.to_dict(),
            "entry_points": list(self.entry_points),
            "path_aliases": {k: list(v) for k, v in self.path_aliases.items()},
            "type_usage_policy": self.type_usage_policy,
            "ci": self.ci.to_dict(),
        }


def find_config_file(root: str | Path = ".") -> Optional[Path]:
    """Locate the configuration file.

    Priority:
    1. TUC_CONFIG environment variable (a `.env` in root is honoured)
    2. tuc.config.json in root

    Returns:
        Path to the config file, or None when the defaults apply
    """
    root = Path(root)
    load_dotenv(root / ".env")

    configured = os.getenv(CONFIG_ENV_VAR)
    if configured:
        path = Path(configured)
        return path if path.is_absolute() else root / path

    candidate = root / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def load_config(config_path: str | Path | None = None, root: str | Path = ".") -> Config:
    """Load configuration from an explicit path, the environment, or root.

    Args:
        config_path: Explicit config file; must exist when given
        root: Project root used for discovery

    Returns:
        Config with defaults for everything the file omits

    Raises:
        ConfigurationError: Missing explicit file, non-JSON file, malformed JSON
            or invalid option values
    """
    path = Path(config_path) if config_path else find_config_file(root)
    if path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILE_NAME)
        return Config()

    if path.suffix.lower() != ".json":
        raise ConfigurationError(
            f"Unsupported config file '{path}': JavaScript config files are not supported. "
            "Please use JSON format."
        )

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file '{path}': {exc.strerror or exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Malformed config file '{path}': {exc}") from exc

    logger.debug("Loaded configuration from %s", path)
    return Config.from_dict(data)


def merge_configs(base: Config, custom: Config) -> Config:
    """Combine a custom config with a base one.

    Custom search dirs win when non-empty; exclude patterns are the sorted
    union of both; detection types, entry points and policies come from
    custom.
    """
    return Config(
        search_dirs=list(custom.search_dirs) if custom.search_dirs else list(base.search_dirs),
        exclude_patterns=sorted(set(base.exclude_patterns) | set(custom.exclude_patterns)),
        extensions=list(custom.extensions) if custom.extensions else list(base.extensions),
        detection_types=DetectionTypes(**custom.detection_types.to_dict()),
        entry_points=list(custom.entry_points) or list(base.entry_points),
        path_aliases={**base.path_aliases, **custom.path_aliases},
        type_usage_policy=custom.type_usage_policy,
        ci=CiConfig(**custom.ci.to_dict()),
    )


def adjust_config_for_monorepo(config: Config, root: str | Path = ".") -> Config:
    """Point search dirs at every app of a workspace monorepo.

    A root is a monorepo when its package.json declares `workspaces` or a
    pnpm-workspace.yaml exists, and it has an `apps/` directory. Each search
    dir `d` then becomes `apps/<app>/d` for every app.

    Raises:
        ConfigurationError: If package.json is not valid JSON
    """
    root = Path(root)
    package_json = root / "package.json"
    if not package_json.is_file():
        return config

    try:
        manifest = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read {package_json}: {exc}") from exc

    is_monorepo = (isinstance(manifest, dict) and "workspaces" in manifest) or (root / "pnpm-workspace.yaml").exists()
    apps_dir = root / "apps"
    if not is_monorepo or not apps_dir.is_dir():
        return config

    apps = sorted(entry.name for entry in apps_dir.iterdir() if entry.is_dir())
    search_dirs = [f"apps/{app}/{directory}" for app in apps for directory in config.search_dirs]
    if search_dirs:
        logger.info("Monorepo detected, scanning %d app(s)", len(apps))
        config.search_dirs = search_dirs
    return config


def resolve_jobs(jobs: Optional[int] = None) -> int:
    """Worker count: explicit value, then TUC_JOBS, then available CPUs.

    Raises:
        ConfigurationError: If the count is not a positive integer
    """
    if jobs is None:
        configured = os.getenv(JOBS_ENV_VAR)
        if configured:
            try:
                jobs = int(configured)
            except ValueError as exc:
                raise ConfigurationError(f"{JOBS_ENV_VAR} must be an integer, got '{configured}'") from exc
        else:
            jobs = os.cpu_count() or 1

    if jobs < 1:
        raise ConfigurationError(f"Job count must be at least 1, got {jobs}")
    return jobs
