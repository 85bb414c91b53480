"""Typed configuration for a publish run.

Configuration comes from two places:
- the environment (token, repository, endpoint override, debug flag)
- an optional TOML settings file (endpoint, timeouts, retry policy)

Everything ends up in a frozen ``Config`` that is passed explicitly to the
publisher. Nothing here is module-level mutable state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_int, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "RetryPolicy",
    "Settings",
    "load_config_from_env",
    "load_settings",
    "parse_repo_slug",
    "DEFAULT_API_ENDPOINT",
    "DEFAULT_RETRY_LIMIT",
    "DEFAULT_BASE_DELAY_SECONDS",
]

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

DEFAULT_API_ENDPOINT = "https://api.github.com"

DEFAULT_RETRY_LIMIT = 5
DEFAULT_BASE_DELAY_SECONDS = 1.0

# Metadata calls are small; uploads can be large release archives.
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

_TRUTHY = frozenset({"1", "true", "yes", "on", "t", "y"})


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when configuration cannot be loaded or is incomplete."""

    message: str
    path: Path | None = None
    hint: str | None = None
    kind: Literal["missing_token", "missing_repo", "invalid_slug", "invalid_file"] = "invalid_file"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retry with exponential backoff.

    Attributes:
        limit: Maximum number of upload attempts per file
        base_delay: Sleep before the second attempt, doubled for each later one
    """

    limit: int = DEFAULT_RETRY_LIMIT
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS

    def delay_before(self, attempt: int) -> float:
        """Backoff before upload attempt ``attempt`` (0-based).

        The first attempt is not delayed; attempt k >= 1 waits
        ``base_delay * 2 ** (k - 1)``.
        """
        if attempt <= 0:
            return 0.0
        return self.base_delay * (2 ** (attempt - 1))


@dataclass(frozen=True, slots=True)
class Settings:
    """Values read from an optional TOML settings file."""

    endpoint: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    upload_timeout_seconds: float = DEFAULT_UPLOAD_TIMEOUT_SECONDS
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Settings:
        api: StrDict = get_table(data, "api") or {}
        retry: StrDict = get_table(data, "retry") or {}

        limit = get_int(retry, "limit")
        if limit is not None and limit < 1:
            raise ValueError(f"retry.limit must be >= 1 (got {limit})")

        base_delay = get_float(retry, "base_delay_seconds")
        if base_delay is not None and base_delay < 0:
            raise ValueError(f"retry.base_delay_seconds must be >= 0 (got {base_delay})")

        return cls(
            endpoint=get_str(api, "endpoint"),
            timeout_seconds=get_float(api, "timeout_seconds") or DEFAULT_TIMEOUT_SECONDS,
            upload_timeout_seconds=get_float(api, "upload_timeout_seconds")
            or DEFAULT_UPLOAD_TIMEOUT_SECONDS,
            retry=RetryPolicy(
                limit=limit if limit is not None else DEFAULT_RETRY_LIMIT,
                base_delay=base_delay if base_delay is not None else DEFAULT_BASE_DELAY_SECONDS,
            ),
        )


@dataclass(frozen=True, slots=True)
class Config:
    """Everything a publish run needs to talk to the API."""

    token: str
    owner: str
    repo: str
    api_endpoint: str = DEFAULT_API_ENDPOINT
    debug: bool = False
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    upload_timeout_seconds: float = DEFAULT_UPLOAD_TIMEOUT_SECONDS

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def repo_api_url(self) -> str:
        """Base URL for repository-scoped endpoints."""
        return f"{self.api_endpoint.rstrip('/')}/repos/{self.owner}/{self.repo}"


def parse_repo_slug(slug: str) -> Result[tuple[str, str], ConfigError]:
    """Split ``owner/repo`` into its two parts."""
    parts = slug.strip().split("/")
    if len(parts) != 2 or not all(p.strip() for p in parts):
        return Err(
            ConfigError(
                f"invalid format used for username and repository: {slug}",
                hint="Expected <owner>/<repo>",
                kind="invalid_slug",
            )
        )
    return Ok((parts[0].strip(), parts[1].strip()))


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def load_config_from_env(
    environ: Mapping[str, str],
    *,
    slug: str | None = None,
    settings: Settings | None = None,
) -> Result[Config, ConfigError]:
    """Build a Config from environment variables.

    Args:
        environ: Environment mapping (usually ``os.environ``)
        slug: ``owner/repo`` from the command line; falls back to
            GITHUB_USER / GITHUB_REPO when omitted
        settings: Optional file settings; GITHUB_API overrides its endpoint

    Returns:
        Ok(Config) on success, Err(ConfigError) when the token or the
        repository cannot be determined
    """
    settings = settings or Settings()

    token = (environ.get("GITHUB_TOKEN") or "").strip()
    if not token:
        return Err(
            ConfigError(
                "GITHUB_TOKEN environment variable is not set",
                hint="https://help.github.com/articles/creating-an-access-token-for-command-line-use/",
                kind="missing_token",
            )
        )

    if slug is not None:
        parsed = parse_repo_slug(slug)
        if isinstance(parsed, Err):
            return parsed
        owner, repo = parsed.value
    else:
        owner = (environ.get("GITHUB_USER") or "").strip()
        repo = (environ.get("GITHUB_REPO") or "").strip()
        if not owner or not repo:
            return Err(
                ConfigError(
                    "repository not specified",
                    hint="Pass <owner>/<repo> or set GITHUB_USER and GITHUB_REPO",
                    kind="missing_repo",
                )
            )

    endpoint = (
        (environ.get("GITHUB_API") or "").strip() or settings.endpoint or DEFAULT_API_ENDPOINT
    )

    return Ok(
        Config(
            token=token,
            owner=owner,
            repo=repo,
            api_endpoint=endpoint,
            debug=_parse_bool(environ.get("DEBUG")),
            retry=settings.retry,
            timeout_seconds=settings.timeout_seconds,
            upload_timeout_seconds=settings.upload_timeout_seconds,
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_settings(path: Path) -> Result[Settings, ConfigError]:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file

    Returns:
        Ok(Settings) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Settings.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
