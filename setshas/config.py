"""
A util (get_config) that processes the optional set-shas.yaml configuration,
and another (build_settings) that merges it with command line arguments into
the Settings used for a run.

Command line arguments win over the config file, which wins over defaults.
"""

import logging
import os
from ruamel.yaml import YAML

logger = logging.getLogger(__name__)
yaml = YAML(typ="safe")

DEFAULT_CONFIG_FILE = "set-shas.yaml"
DEFAULT_BASE_URL = "https://gitea.com"
DEFAULT_PAGE_LIMIT = 10

CONFIG_KEYS = {
    "main-branch-name",
    "error-on-no-successful-workflow",
    "working-directory",
    "base-url",
    "page-limit",
    "max-pages",
}


class ConfigError(Exception):
    pass


class ConfigNotFoundError(ConfigError):
    def __init__(self, path, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.path = path

    def __str__(self):
        return f"config file not found at {self.path}"


class Settings:
    def __init__(
        self,
        token="",
        main_branch_name="main",
        error_on_no_successful_workflow=False,
        working_directory=".",
        base_url=DEFAULT_BASE_URL,
        page_limit=DEFAULT_PAGE_LIMIT,
        max_pages=None,
    ):
        self.token = token
        self.main_branch_name = main_branch_name
        self.error_on_no_successful_workflow = error_on_no_successful_workflow
        self.working_directory = working_directory
        self.base_url = base_url
        self.page_limit = page_limit
        self.max_pages = max_pages

    def __repr__(self):
        # Never show the token
        return (
            f"Settings(main_branch_name={self.main_branch_name!r}, "
            f"error_on_no_successful_workflow={self.error_on_no_successful_workflow!r}, "
            f"working_directory={self.working_directory!r}, "
            f"base_url={self.base_url!r}, page_limit={self.page_limit!r}, "
            f"max_pages={self.max_pages!r})"
        )


def get_config(path=None, debug=False, verbose=False):
    """
    Returns set-shas.yaml configuration as a Python dictionary.

    If no path is given the default file in the current directory is used, and
    a missing file means an empty configuration.
    """
    if verbose:
        logger.setLevel(logging.INFO)
    elif debug:
        logger.setLevel(logging.DEBUG)

    config_path = os.path.abspath(path or DEFAULT_CONFIG_FILE)
    if not os.path.exists(config_path):
        if path:
            raise ConfigNotFoundError(config_path)
        logger.debug(f"No config file at {config_path}, using defaults")
        return {}

    logger.info(f"Loading set-shas config from {config_path}")
    with open(config_path) as f:
        config = yaml.load(f) or {}

    if not isinstance(config, dict):
        raise ConfigError(f"{config_path} should contain a mapping of settings")
    unknown = sorted(set(config) - CONFIG_KEYS)
    if unknown:
        raise ConfigError(
            f"Unknown key(s) in {config_path}: {', '.join(str(k) for k in unknown)}"
        )

    logger.debug(f"Config loaded and parsed: {config}")
    return config


def parse_bool(value):
    """
    The action wrapper passes booleans as strings, only "true" is true.
    """
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def parse_positive_int(key, value):
    if isinstance(value, bool):
        raise ConfigError(f"{key} should be a positive integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} should be a positive integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"{key} should be a positive integer, got {value!r}")
    return number


def build_settings(args, config=None, environ=None):
    """
    Merge parsed command line `args` with `config` into a Settings object.
    """
    if config is None:
        config = {}
    if environ is None:
        environ = os.environ

    def pick(arg_value, key, default):
        if arg_value is not None and arg_value != "":
            return arg_value
        if config.get(key) is not None:
            return config[key]
        return default

    max_pages = pick(None, "max-pages", None)
    if max_pages is not None:
        max_pages = parse_positive_int("max-pages", max_pages)

    settings = Settings(
        token=args.token or environ.get("GITHUB_TOKEN", ""),
        main_branch_name=str(pick(args.main_branch_name, "main-branch-name", "main")),
        error_on_no_successful_workflow=parse_bool(
            pick(
                args.error_on_no_successful_workflow,
                "error-on-no-successful-workflow",
                False,
            )
        ),
        working_directory=str(pick(args.working_directory, "working-directory", ".")),
        base_url=str(
            pick(
                args.base_url,
                "base-url",
                environ.get("GITHUB_SERVER_URL") or DEFAULT_BASE_URL,
            )
        ),
        page_limit=parse_positive_int(
            "page-limit", pick(None, "page-limit", DEFAULT_PAGE_LIMIT)
        ),
        max_pages=max_pages,
    )
    logger.info(f"Using {settings}")
    return settings
