import json
import logging
import shlex
from pathlib import Path
from typing import Any, Dict, Optional

import mdwiki.settings as default_settings

log = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "1", "t", "yes", "y"}
FALSE_STRINGS = {"false", "0", "f", "no", "n"}


class WikiSettings:
    """
    The configuration value for one MDWiki run.

    It is built once at startup and handed to every component, so nothing
    reads module-level state while the wiki is running. It follows a clear
    precedence:
    1. Base values from `settings.py` (which already applied `.env` and environment variables).
    2. Overrides from the wiki's `.mdwiki.json` for settings in `MODIFIABLE_SETTINGS`.
    3. Keyword overrides passed by the caller (e.g. the command line).

    The object is read-only once constructed.
    """

    def __init__(self, overrides_path: Optional[Path] = None, **overrides: Any) -> None:
        """
        Initializes the settings object by loading defaults and overrides.

        :param overrides_path: JSON overrides file. Defaults to `OVERRIDES_FILENAME` inside the source directory.
        :param overrides: Setting names mapped to values that take precedence over everything else.
        """
        self._frozen = False
        self._load_defaults()

        source_dir = Path(overrides.get("SOURCE_DIR", self.SOURCE_DIR))
        self.OVERRIDES_JSON_PATH = overrides_path or source_dir / self.OVERRIDES_FILENAME
        self._load_overrides()

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting '{key}'.")
            self._set_coerced(key, value)

        self.SOURCE_DIR = Path(self.SOURCE_DIR).expanduser().resolve()
        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"'{self.__class__.__name__}' is read-only; cannot set '{name}'")
        super().__setattr__(name, value)

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings.py module as defaults."""
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _coerce(self, key: str, value: Any) -> Any:
        """
        Converts a value to the type of the setting's default.

        :param key: The setting name.
        :param value: The raw value (from JSON or a caller).
        :return: The converted value.
        :raises ValueError: If the value cannot represent the setting.
        :raises TypeError: If the value has an unusable type.
        """
        default = getattr(self, key)
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value
            if isinstance(value, str) and value.strip().lower() in TRUE_STRINGS | FALSE_STRINGS:
                return value.strip().lower() in TRUE_STRINGS
            raise ValueError(f"expected a boolean, got {value!r}")
        if isinstance(default, Path):
            return value if isinstance(value, Path) else Path(value)
        if isinstance(default, list):
            if isinstance(value, str):
                return shlex.split(value)
            if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
                return list(value)
            raise TypeError(f"expected a list of strings or a command line string, got {value!r}")
        if isinstance(default, (int, float)):
            if isinstance(value, bool):
                raise TypeError(f"expected a number, got {value!r}")
            return type(default)(value)
        if isinstance(default, str) and not isinstance(value, str):
            raise TypeError(f"expected a string, got {value!r}")
        return value

    def _set_coerced(self, key: str, value: Any) -> None:
        setattr(self, key, self._coerce(key, value))

    def _load_overrides(self) -> None:
        """
        Loads and applies settings from the overrides JSON file.

        It will only apply overrides for keys that are explicitly listed in
        the `MODIFIABLE_SETTINGS` set in `settings.py`.
        """
        if not self.OVERRIDES_JSON_PATH.is_file():
            return

        try:
            with self.OVERRIDES_JSON_PATH.open('r') as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.error(f"Failed to load or parse overrides file '{self.OVERRIDES_JSON_PATH}': {e}")
            return

        if not isinstance(overrides, dict):
            log.error(f"Overrides file '{self.OVERRIDES_JSON_PATH}' must contain a JSON object. Ignoring.")
            return

        log.info(f"Loading configuration overrides from {self.OVERRIDES_JSON_PATH}")
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self.MODIFIABLE_SETTINGS:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue
            try:
                self._set_coerced(key, value)
            except (TypeError, ValueError) as e:
                log.warning(f"Invalid value for override setting '{key}': {e}. Ignoring.")
                continue
            log.debug(f"Overridden setting: {key} = {getattr(self, key)!r}")

    def as_dict(self) -> Dict[str, Any]:
        """Returns every setting as a plain dictionary."""
        return {key: value for key, value in vars(self).items() if key.isupper()}
