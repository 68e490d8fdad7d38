"""Client settings, read from the environment and overridable from the CLI."""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .errors import ConfigurationError

ENV_PREFIX = 'I18N_HELPER_'

DEFAULT_TIMEOUT = 600.0

# Sampling parameters sent with every request
DEFAULT_SAMPLING = {
    'max_tokens': 4096,
    'min_p': 0.05,
    'temperature': 0.1,
    'top_p': 0.7,
    'top_k': 50,
    'frequency_penalty': 0.5,
}


@dataclass(frozen=True)
class ClientConfig:
    api_url: str
    api_token: str
    model: str
    connect_timeout: float = DEFAULT_TIMEOUT
    read_timeout: float = DEFAULT_TIMEOUT
    max_workers: Optional[int] = None
    sampling: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SAMPLING))

    def __post_init__(self):
        missing = [name for name in ('api_url', 'api_token', 'model') if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                'Missing client settings: ' + ', '.join(missing) +
                f' (set {ENV_PREFIX}<NAME> or pass the matching --flag)'
            )
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ConfigurationError('Timeouts must be positive')
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError('max_workers must be at least 1')

    @property
    def timeout(self):
        """(connect, read) tuple in the form requests expects."""
        return (self.connect_timeout, self.read_timeout)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'ClientConfig':
        """Build a config from I18N_HELPER_* variables; keyword overrides win."""
        env = os.environ if environ is None else environ

        def read(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name, '').strip()
            return value or None

        values = {
            'api_url': read('API_URL'),
            'api_token': read('API_TOKEN'),
            'model': read('MODEL'),
            'connect_timeout': _to_number(read('CONNECT_TIMEOUT'), float, 'CONNECT_TIMEOUT'),
            'read_timeout': _to_number(read('READ_TIMEOUT'), float, 'READ_TIMEOUT'),
            'max_workers': _to_number(read('MAX_WORKERS'), int, 'MAX_WORKERS'),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values = {k: v for k, v in values.items() if v is not None}
        values.setdefault('api_url', '')
        values.setdefault('api_token', '')
        values.setdefault('model', '')
        return cls(**values)


def _to_number(raw: Optional[str], kind, name: str):
    if raw is None:
        return None
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f'{ENV_PREFIX}{name} must be a number, got {raw!r}') from None
