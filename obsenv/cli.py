#!/usr/bin/env python3
"""
Command-line entry point for obsenv (``manage-obs-env``).

One ``--action`` selects what to do with the observing environment;
the remaining options parameterize it. Results are written as log lines
on stderr, as tables with ``--pretty`` or as JSONL on stdout with
``--json``.
"""

import json
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import click

from .config import LOG_LEVELS, load_config, setup_logging
from .exit_codes import (
    SUCCESS,
    PARTIAL_SUCCESS,
    CommandError,
    ConfigurationError,
    get_exit_code_for_exception,
)
from .render import (
    emit_jsonl,
    log_batch,
    render_batch_table,
    render_versions_table,
)
from .repos import Repos
from .services.environment import ObservingEnvironment

logger = logging.getLogger("obsenv")


class Action(Enum):
    """Actions available through ``--action``."""
    SETUP = "Setup"
    PRINT_CONFIG = "PrintConfig"
    RESET = "Reset"
    SHOW_CURRENT_VERSIONS = "ShowCurrentVersions"
    SHOW_ORIGINAL_VERSIONS = "ShowOriginalVersions"
    CHECKOUT_BRANCH = "CheckoutBranch"
    CHECKOUT_VERSION = "CheckoutVersion"
    COMPARE_VERSIONS = "CompareVersions"

    @classmethod
    def parse(cls, value: str) -> 'Action':
        for action in cls:
            if action.value.lower() == value.lower():
                return action
        raise ConfigurationError(f"Unknown action: {value}")


REPOSITORY_ACTIONS = (Action.CHECKOUT_BRANCH, Action.CHECKOUT_VERSION)


@dataclass
class RunOptions:
    """Validated parameters of one invocation."""
    action: Action
    env_path: str
    repository: Optional[str] = None
    branch_name: str = ""
    base_env_branch_name: str = "main"
    pretty: bool = False
    json_output: bool = False


def validate_action(action: Action, repository: Optional[str]) -> Action:
    """
    Check that the action has the parameters it needs.

    Raises:
        ConfigurationError: If a single-repository action has no repository
    """
    if action in REPOSITORY_ACTIONS and not repository:
        raise ConfigurationError(
            f"{action.value} action requires a repository, none given"
        )
    return action


def _finish(result, options: RunOptions, title: str) -> int:
    if options.json_output:
        emit_jsonl(result)
    elif options.pretty:
        render_batch_table(result, title=title)
    else:
        log_batch(result)
    return SUCCESS if result.success else PARTIAL_SUCCESS


def run(options: RunOptions, config: Optional[Dict[str, Any]] = None) -> int:
    """
    Dispatch one action against the observing environment.

    Returns:
        Process exit code

    Raises:
        CommandError: For configuration, resolver and single-repository
            failures
    """
    logger.info("Running manage obs env...")
    validate_action(options.action, options.repository)
    obs_env = ObservingEnvironment.with_destination(options.env_path, config=config)
    action = options.action

    if action == Action.SETUP:
        logger.info("Executing Setup...")
        logger.debug("Creating path...")
        obs_env.create_path()
        logger.debug("Cloning repositories...")
        result = obs_env.clone_repositories()
        if not options.json_output:
            logger.info("The following repositories were cloned:")
        return _finish(result, options, "Setup")

    if action == Action.PRINT_CONFIG:
        if options.json_output:
            print(json.dumps({
                'env_path': str(obs_env.destination),
                'descriptor_remote': obs_env.resolver.descriptor_remote,
                'manifest_file': obs_env.resolver.manifest_file,
                'repositories': [i.to_dict() for i in obs_env.registry],
            }, ensure_ascii=False), flush=True)
        else:
            logger.info(obs_env.summarize())
        return SUCCESS

    if action == Action.RESET:
        logger.info("Resetting Observing environment...")
        result = obs_env.reset_base_environment(options.base_env_branch_name)
        if options.json_output or options.pretty:
            return _finish(result, options, "Reset")
        for outcome in result.skipped:
            logger.warning(f"{outcome.name}: {outcome.message}")
        if result.failures:
            logger.error(f"Error resetting {len(result.failures)} repositories.")
            log_batch(result, only_failures=True)
            return PARTIAL_SUCCESS
        logger.info("All repositories set to their base versions.")
        return SUCCESS

    if action == Action.SHOW_CURRENT_VERSIONS:
        if not options.json_output:
            logger.info("Current environment versions:")
        return _finish(obs_env.get_current_env_versions(), options, "Current versions")

    if action == Action.SHOW_ORIGINAL_VERSIONS:
        versions = obs_env.get_base_env_versions(options.base_env_branch_name)
        if options.json_output:
            for name, version in versions.items():
                print(json.dumps({'name': name, 'version': version}), flush=True)
        elif options.pretty:
            render_versions_table(versions, title=f"Base environment ({options.base_env_branch_name})")
        else:
            logger.info("Base Environment versions:")
            for name, version in versions.items():
                logger.info(f"{name}: {version}")
        return SUCCESS

    if action == Action.COMPARE_VERSIONS:
        result = obs_env.compare_env_versions(options.base_env_branch_name)
        return _finish(result, options, f"Compared with {options.base_env_branch_name}")

    if action == Action.CHECKOUT_BRANCH:
        obs_env.checkout_branch(options.repository, options.branch_name)
        return SUCCESS

    if action == Action.CHECKOUT_VERSION:
        obs_env.reset_index_to_version(options.repository, options.branch_name)
        return SUCCESS

    raise ConfigurationError(f"Unhandled action: {action.value}")


@click.command(name="manage-obs-env")
@click.version_option(package_name="obsenv")
@click.option('--action', 'action_name', required=True,
              type=click.Choice([a.value for a in Action], case_sensitive=False),
              help='Which action to execute.')
@click.option('--log-level', type=click.Choice(list(LOG_LEVELS), case_sensitive=False),
              default=None, help='Log level (default: from config, "debug").')
@click.option('--env-path', default=None,
              help='Path to the environment (default: from config).')
@click.option('--repository', type=click.Choice(Repos.names()), default=None,
              help='Repository to act on (for actions on individual repos).')
@click.option('--branch-name', default="",
              help='Branch or version to checkout for CheckoutBranch/CheckoutVersion.')
@click.option('--base-env-branch-name', default=None,
              help='Base environment branch for Reset/ShowOriginalVersions/CompareVersions (default: from config, "main").')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Path to a config file.')
@click.option('--pretty', is_flag=True, help='Render results as tables.')
@click.option('--json', 'json_output', is_flag=True, help='Output results as JSONL.')
def cli(action_name, log_level, env_path, repository, branch_name,
        base_env_branch_name, config_path, pretty, json_output):
    """Manage the observing environment.

    Clone the environment repositories, show their versions and reset
    them to the versions of a base environment.

    Examples:

    \b
        manage-obs-env --action Setup --env-path ~/obs-env
        manage-obs-env --action ShowCurrentVersions
        manage-obs-env --action Reset --base-env-branch-name cycle.0038
        manage-obs-env --action CheckoutBranch --repository ts_xml --branch-name develop
    """
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        setup_logging(log_level or "info")
        logger.error(str(e))
        sys.exit(e.exit_code)

    setup_logging(log_level or config["logging"]["level"], config["logging"]["format"])

    options = RunOptions(
        action=Action.parse(action_name),
        env_path=env_path or config["general"]["env_path"],
        repository=repository,
        branch_name=branch_name,
        base_env_branch_name=base_env_branch_name or config["base_env"]["default_branch"],
        pretty=pretty,
        json_output=json_output,
    )

    try:
        code = run(options, config=config)
    except KeyboardInterrupt as e:
        logger.error("Interrupted by user")
        code = get_exit_code_for_exception(e)
    except CommandError as e:
        logger.error(f"{type(e).__name__}: {e}")
        code = get_exit_code_for_exception(e)
    sys.exit(code)


def main():
    cli()


if __name__ == "__main__":
    main()
