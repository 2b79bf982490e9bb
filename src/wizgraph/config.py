"""
Run-time options of a wizard.

Options can be built from a mapping, a YAML document or ``WIZGRAPH_*``
environment variables. Unknown keys in mappings are ignored with a warning.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from wizgraph.errors import WizardError

logger = logging.getLogger(__name__)

ENV_PREFIX = "WIZGRAPH_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise WizardError(f"Invalid boolean value: {raw!r}")


@dataclass
class WizardOptions:
    """
    Properties:
        show_progress_tracker:
            Whether step views carry the projected progress path.

        default_form_data:
            ``{name_or_id: value}`` defaults written onto matching nodes'
            ``value`` attribute before a run starts.

        request_timeout:
            Seconds allowed for a remote option list request.

        log_level:
            Level name used by logging_setup.init_logger.

        on_submit:
            Callback receiving the exported answers on submit. Never
            loaded from files or environment.
    """

    show_progress_tracker: bool = True
    default_form_data: Dict[str, Any] = field(default_factory=dict)
    request_timeout: float = 10.0
    log_level: str = "INFO"
    on_submit: Optional[Callable[[Dict[str, Any]], None]] = None

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "WizardOptions":
        d = dict(d or {})
        known = {f.name for f in fields(cls)} - {"on_submit"}
        unknown = sorted(set(d) - known)
        if unknown:
            logger.warning("Ignoring unknown wizard options: %s", ", ".join(unknown))

        options = cls(**{key: value for key, value in d.items() if key in known})
        if not isinstance(options.default_form_data, dict):
            raise WizardError("default_form_data must be a mapping")
        try:
            options.request_timeout = float(options.request_timeout)
        except (TypeError, ValueError) as exc:
            raise WizardError(f"Invalid request_timeout: {options.request_timeout!r}") from exc
        options.show_progress_tracker = bool(options.show_progress_tracker)
        options.log_level = str(options.log_level).upper()
        return options

    @classmethod
    def from_yaml(cls, s: str) -> "WizardOptions":
        d = yaml.safe_load(s) or {}
        if not isinstance(d, dict):
            raise WizardError("Wizard options YAML must be a mapping")
        return cls.from_dict(d)

    @classmethod
    def from_yaml_file(cls, path: str) -> "WizardOptions":
        with open(path, encoding="utf-8") as fh:
            return cls.from_yaml(fh.read())

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WizardOptions":
        """
        Read ``WIZGRAPH_SHOW_PROGRESS_TRACKER``, ``WIZGRAPH_REQUEST_TIMEOUT``
        and ``WIZGRAPH_LOG_LEVEL``. Missing variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        d: Dict[str, Any] = {}

        raw = environ.get(f"{ENV_PREFIX}SHOW_PROGRESS_TRACKER")
        if raw is not None:
            d["show_progress_tracker"] = _parse_bool(raw)
        raw = environ.get(f"{ENV_PREFIX}REQUEST_TIMEOUT")
        if raw is not None:
            d["request_timeout"] = raw
        raw = environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if raw is not None:
            d["log_level"] = raw

        return cls.from_dict(d)
