from typing import Any, Mapping, TypeVar

T = TypeVar("T", bound=Mapping[str, Any])
U = TypeVar("U", bound=Mapping[str, Any])


def resolve_config(config: T | None, default_config: U) -> U:
    unknown = set(config or {}) - set(default_config)
    if unknown:
        raise KeyError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")
    _config = dict(default_config)
    if config:
        for key in _config:
            if key in config:
                _config[key] = config[key]
    return _config  # type: ignore[return-value]
