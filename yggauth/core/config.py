import yaml


# Used whenever a key is absent from the configuration file
DEFAULTS = {
    'auth-server': 'https://authserver.mojang.com',
    'session-server': 'https://sessionserver.mojang.com',
    'timeout': 10,
    'debug': False
}

_MISSING = object()


class Config:
    """Configuration manager from external ``yaml`` files."""

    def __init__(self, path: str = None):
        self.config = {}

        if path is not None:
            with open(path, 'r') as f:
                self.config = yaml.safe_load(f.read()) or {}

        if not isinstance(self.config, dict):
            raise ValueError(f'Configuration file must contain a mapping! [path={ path }]')

    @classmethod
    def from_dict(cls, values: dict):
        config = cls()
        config.config = dict(values)

        return config

    def get(self, prop: str, default=_MISSING):
        if prop in self.config:
            return self.config[prop]

        if default is not _MISSING:
            return default

        if prop in DEFAULTS:
            return DEFAULTS[prop]

        raise KeyError(prop)

    def __contains__(self, prop: str):
        return prop in self.config
