"""Message template loading from bundled, local or remote YAML."""

import logging
import os
import threading
import urllib.parse
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import jsonschema
import requests
import yaml

from .config_loader import ConfigLoader
from .errors import MessageTemplateError

logger = logging.getLogger(__name__)

# Shape every template file must have: canonical rule name -> template text
TEMPLATES_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "propertyNames": {"pattern": "^[A-Z][A-Za-z]*$"},
    "additionalProperties": {"type": "string"},
}


class MessageTemplateStore:
    """Read-only mapping of canonical rule name to message template."""

    def __init__(self, config_loader: Optional[ConfigLoader] = None):
        """
        Load message templates from the configured location.

        Args:
            config_loader: ConfigLoader instance. Defaults to one reading the
                bundled local-config.yaml.

        Raises:
            MessageTemplateError: If templates cannot be read, fetched or do
                not match TEMPLATES_SCHEMA
        """
        self.config_loader = config_loader or ConfigLoader()
        self.location = self.config_loader.get_message_templates_location()

        raw = self._load_from_uri(self.location)
        try:
            jsonschema.validate(instance=raw, schema=TEMPLATES_SCHEMA)
        except jsonschema.ValidationError as e:
            raise MessageTemplateError(
                f"Invalid message templates in {self.location}: {e.message}"
            ) from e

        self.templates: Mapping[str, str] = MappingProxyType(dict(raw))
        logger.info(f"Loaded {len(self.templates)} message templates from {self.location}")

    def get(self, rule: str) -> Optional[str]:
        """Get the template for a canonical rule name, or None."""
        return self.templates.get(rule)

    def _load_from_uri(self, uri: str) -> Any:
        """
        Load YAML from a URI.

        Supports:
        - Relative paths - resolved against the config file's directory
        - Absolute paths and file:// URIs
        - http:// and https:// URLs
        """
        parsed = urllib.parse.urlparse(uri)

        if parsed.scheme in ("http", "https"):
            return self._parse_yaml(self._fetch_uri(uri), uri)

        if parsed.scheme == "file":
            target = Path(urllib.parse.unquote(parsed.path))
        elif os.path.isabs(uri):
            target = Path(uri)
        elif not parsed.scheme or len(parsed.scheme) == 1:
            # No scheme (a one-letter "scheme" is a Windows drive)
            target = self.config_loader.config_dir.joinpath(uri)
        else:
            raise MessageTemplateError(f"Unsupported URI scheme: {parsed.scheme} in {uri}")

        try:
            with target.open("r") as f:
                content = f.read()
        except OSError as e:
            raise MessageTemplateError(f"Failed to read message templates from {uri}: {e}") from e
        return self._parse_yaml(content, uri)

    def _fetch_uri(self, uri: str) -> str:
        """Fetch content from an HTTP/HTTPS URI."""
        timeout = self.config_loader.get_fetch_timeout()
        logger.debug(f"Fetching message templates from {uri} (timeout {timeout}s)")
        try:
            response = requests.get(uri, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise MessageTemplateError(f"Failed to fetch message templates from {uri}: {e}") from e
        return response.text

    def _parse_yaml(self, content: str, uri: str) -> Any:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MessageTemplateError(f"Invalid YAML in {uri}: {e}") from e


_store: Optional[MessageTemplateStore] = None
_store_lock = threading.Lock()


def get_message_templates(config_loader: Optional[ConfigLoader] = None) -> MessageTemplateStore:
    """
    Get or initialize the process-wide MessageTemplateStore.

    The first call loads templates (from config_loader when given); later
    calls return the same store and ignore config_loader.
    """
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = MessageTemplateStore(config_loader)
    return _store


def reset_message_templates() -> None:
    """Drop the process-wide store so the next access reloads it."""
    global _store
    with _store_lock:
        _store = None
