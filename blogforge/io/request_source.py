"""Resolves the BlogRequest for a run from files, flags, config or prompts."""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from pydantic import ValidationError

from ..config.settings import Settings
from ..errors import RequestValidationError
from ..models import BlogRequest

logger = logging.getLogger(__name__)

REQUEST_FILES = ("blog-request.json", "request.json", "sample-request.json")
DEFAULT_TOPIC = "The Future of AI"

# Normalised key -> BlogRequest field
_FIELD_ALIASES = {
    "topic": "topic",
    "description": "description",
    "targetaudience": "target_audience",
    "audience": "target_audience",
    "wordcount": "word_count",
    "words": "word_count",
    "tone": "tone",
    "author": "author",
}


def _normalise_key(key: Any) -> str:
    return re.sub(r"[^a-z0-9]", "", str(key).lower())


def build_request(data: Any, source: str) -> BlogRequest:
    """
    Validate a loosely-keyed mapping into a BlogRequest.

    Keys match case- and separator-insensitively, so Topic, targetAudience
    and word_count are all accepted. Unknown keys are ignored.

    Raises:
        RequestValidationError: If data is not a mapping or fails validation
    """
    if not isinstance(data, dict):
        raise RequestValidationError(f"{source}: expected an object with a topic")

    fields: dict[str, Any] = {}
    for key, value in data.items():
        name = _FIELD_ALIASES.get(_normalise_key(key))
        if name is not None and value is not None:
            fields[name] = value

    try:
        return BlogRequest(**fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        )
        raise RequestValidationError(f"{source}: invalid blog request ({problems})") from e


def load_request_file(path: Path) -> BlogRequest:
    """Load a BlogRequest from a JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise RequestValidationError(f"Error parsing JSON file {path}: {e.msg}") from e
    except UnicodeDecodeError as e:
        raise RequestValidationError(f"Error reading {path}: not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise RequestValidationError(f"Error reading {path}: {e}") from e
    request = build_request(data, str(path))
    logger.info("[REQUEST] Loaded blog request from %s", path)
    return request


class RequestSource:
    """
    Finds the blog request for a run.

    Sources are tried in order, first match wins:
    1. A .json request file given on the command line
    2. --topic and related flags
    3. blog-request.json, request.json or sample-request.json in cwd
    4. The blog_request section of the YAML config file
    5. Interactive prompts
    """

    def __init__(
        self,
        settings: Settings,
        input_func: Callable[[str], str] = input,
        cwd: Optional[Path] = None,
    ):
        self.settings = settings
        self.input_func = input_func
        self.cwd = Path(cwd) if cwd is not None else Path(os.getcwd())

    def resolve(self, args) -> BlogRequest:
        """
        Resolve the request from parsed CLI arguments.

        Args:
            args: argparse Namespace with request_file, topic, description,
                audience, wordcount, tone and author attributes

        Returns:
            Validated BlogRequest

        Raises:
            RequestValidationError: If the chosen source is malformed or invalid
        """
        request_file = getattr(args, "request_file", None)
        if request_file and str(request_file).lower().endswith(".json"):
            path = self._path(request_file)
            if path.is_file():
                return load_request_file(path)
            logger.warning("[REQUEST] Request file %s not found, trying other sources", path)

        if getattr(args, "topic", None):
            return self._from_args(args)

        for name in REQUEST_FILES:
            path = self.cwd / name
            if path.is_file():
                print(f"📄 Found {name}, using it for blog generation...")
                return load_request_file(path)

        config_request = self._from_config()
        if config_request is not None:
            print("📄 Using blog request from configuration file...")
            return config_request

        print("No blog request found. Let's create one interactively...")
        return self._interactive()

    def _path(self, value) -> Path:
        path = Path(value)
        return path if path.is_absolute() else self.cwd / path

    def _from_args(self, args) -> BlogRequest:
        data = {
            "topic": args.topic,
            "description": getattr(args, "description", None),
            "target_audience": getattr(args, "audience", None),
            "word_count": getattr(args, "wordcount", None),
            "tone": getattr(args, "tone", None),
            "author": getattr(args, "author", None),
        }
        return build_request(data, "command line")

    def _from_config(self) -> Optional[BlogRequest]:
        path = self._path(self.settings.request_config_file)
        if not path.is_file():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RequestValidationError(f"Error parsing YAML file {path}: {e}") from e

        if not isinstance(config, dict):
            return None
        section = next(
            (v for k, v in config.items() if _normalise_key(k) == "blogrequest"),
            None,
        )
        if not isinstance(section, dict):
            return None

        topic = next(
            (v for k, v in section.items() if _normalise_key(k) == "topic"),
            None,
        )
        if not isinstance(topic, str) or not topic.strip():
            return None

        logger.info("[REQUEST] Using blog_request from %s", path)
        return build_request(section, str(path))

    def _ask(self, prompt: str) -> str:
        try:
            return self.input_func(prompt).strip()
        except EOFError:
            return ""

    def _interactive(self) -> BlogRequest:
        topic = self._ask("Enter blog topic: ") or DEFAULT_TOPIC
        description = self._ask("Enter description (optional): ")
        audience = self._ask("Enter target audience (default: General): ")
        word_count_text = self._ask("Enter word count (default: 800): ")
        tone = self._ask("Enter tone (default: Professional): ")

        data: dict[str, Any] = {"topic": topic, "description": description}
        if audience:
            data["target_audience"] = audience
        if tone:
            data["tone"] = tone
        if word_count_text.isdigit() and int(word_count_text) > 0:
            data["word_count"] = int(word_count_text)
        return build_request(data, "interactive input")
