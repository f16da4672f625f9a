"""Configuration reader for chipster services.

Values come from two YAML files resolved against a root path:

    <root>/src/main/resources/chipster-defaults.yaml    Defaults
    <root>/<conf-path from the defaults>                 Overrides (optional)

Default values may refer to variables with ``{{name}}``. Variables are the
default keys prefixed with ``variable-``.
"""

import os
from typing import Any, Dict, Optional

import yaml

from chipster_client.exceptions import ConfigurationError
from chipster_client.logger import get_logger

log = get_logger(__file__)

ROOT_PATH = "../../"
ROOT_PATH_ENV = "CHIPSTER_ROOT_PATH"
DEFAULT_CONF_PATH = "src/main/resources/chipster-defaults.yaml"
KEY_CONF_PATH = "conf-path"
VARIABLE_PREFIX = "variable-"


class Config:
    """Read configuration keys from the override file with defaults as fallback."""

    KEY_URL_BIND_TYPE_SERVICE = "url-bind-type-service"
    KEY_URL_ADMIN_BIND_TYPE_SERVICE = "url-admin-bind-type-service"
    KEY_URL_INT_SERVICE_LOCATOR = "url-int-service-locator"
    KEY_SECRET_TYPE_SERVICE = "service-password-type-service"
    KEY_JWS_ALGORITHM = "jws-algorithm"

    conf_file_warn_shown = False

    def __init__(self, root_path: Optional[str] = None) -> None:
        """Initialize Config.

        Args:
            root_path: Directory the configuration paths are relative to.
                Defaults to $CHIPSTER_ROOT_PATH or ``../../``.

        Raises:
            ConfigurationError: If the default configuration file is missing
        """
        if root_path is None:
            root_path = os.getenv(ROOT_PATH_ENV, ROOT_PATH)
        self.root_path = root_path
        self.default_conf_path = os.path.join(root_path, DEFAULT_CONF_PATH)

        if not os.path.exists(self.default_conf_path):
            raise ConfigurationError(f"default config file not found: {self.default_conf_path}")

        self.variables: Dict[str, str] = {}
        for key, value in self.read_file(self.default_conf_path).items():
            if str(key).startswith(VARIABLE_PREFIX):
                self.variables[key[len(VARIABLE_PREFIX):]] = str(value)

        self.conf_path: Optional[str] = None
        conf_path = self.get_default(KEY_CONF_PATH)
        if conf_path:
            self.conf_path = os.path.join(root_path, conf_path)

        if not self.conf_path or not os.path.exists(self.conf_path):
            if not Config.conf_file_warn_shown:
                log.warning(f"configuration file {self.conf_path} not found, using defaults")
                Config.conf_file_warn_shown = True
            self.conf_path = None

    def get(self, key: str) -> Any:
        """Return the value of `key`, preferring the override file.

        Raises:
            ConfigurationError: If neither file has a value for `key`
        """
        value = None
        if self.conf_path:
            conf_file = self.read_file(self.conf_path)
            if conf_file:
                value = conf_file.get(key)
        if not value:
            value = self.get_default(key)
        if not value:
            raise ConfigurationError(f"configuration key {key} not found")
        return value

    def get_default(self, key: str) -> Any:
        """Return the default value of `key` with variables substituted."""
        template = self.read_file(self.default_conf_path).get(key)
        if not isinstance(template, str):
            return template
        for name, value in self.variables.items():
            template = template.replace("{{" + name + "}}", value)
        return template

    def read_file(self, file_path: str) -> Dict[str, Any]:
        """Parse a YAML file, an empty file gives an empty dict."""
        with open(file_path) as f:
            return yaml.safe_load(f) or {}
