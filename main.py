"""Main entry point for the issue → tests → fix → PR agent.

Loads environment variables, validates configuration, builds the repair
graph and processes exactly one GitHub issue.

Exit codes: 0 on success or when no issue is labeled, 1 when every repair
attempt failed (or a git/network step broke), 2 on configuration problems.
"""
from dotenv import load_dotenv
import argparse
import os
import sys

import requests

# Load environment variables first, before any other imports
load_dotenv()

from mender.config import get_config, reload_config
from mender.errors import ConfigurationError, MenderError, RepairExhaustedError
from mender.graph import run_once
from mender.run_config import RunConfig
from mender.utils.logger import configure_level, log_agent_progress, log_error, log_info


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Pick a labeled GitHub issue, add tests, fix it and open a PR.")
    parser.add_argument('--issue', type=str, help='Issue number to work on (default: first open issue with the trigger label).')
    parser.add_argument('--repo', type=str, help='Repository as owner/name (default: REPO, GITHUB_REPOSITORY or git remote).')
    parser.add_argument('--label', type=str, help='Trigger label used when no issue number is given.')
    parser.add_argument('--test-command', dest='test_command', type=str, help='Command that runs the test suite.')
    parser.add_argument('--model-attempts', dest='model_attempts', type=int, help='Model-backed attempts after the heuristic.')
    parser.add_argument('--workdir', type=str, help='Repository checkout to operate on (default: current directory).')
    parser.add_argument('--no-sync', dest='sync', action='store_false', help='Skip fetch/checkout/pull and identity setup.')
    parser.add_argument('--draft', dest='draft', action='store_true', default=None, help='Open the pull request as a draft.')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    # Apply parsed arguments to environment variables
    if args.repo is not None:
        os.environ['REPO'] = args.repo
    if args.issue is not None:
        os.environ['ISSUE_NUMBER'] = args.issue
    if args.label is not None:
        os.environ['TRIGGER_LABEL'] = args.label

    try:
        config = reload_config() if (args.repo or args.issue or args.label) else get_config()
    except ValueError as e:
        log_error("Configuration could not be loaded", error=str(e))
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 2

    configure_level(config.log_level)
    config.log_configuration()

    # Validate configuration
    issues = config.validate_configuration()
    if issues:
        log_error("Configuration validation failed", issues=issues)
        print("❌ Configuration issues found:", file=sys.stderr)
        for issue in issues:
            print(f"  - {issue}", file=sys.stderr)
        print("\nPlease fix these issues and try again.", file=sys.stderr)
        return 2

    run_config = RunConfig.from_config(
        config,
        test_command=args.test_command,
        model_attempts=args.model_attempts,
        pr_draft=args.draft,
        sync_workspace=args.sync,
    )
    log_agent_progress("Starting agent", repo=run_config.repo or "<from git remote>",
                       budget=run_config.total_attempts)

    try:
        result = run_once(run_config, workdir=args.workdir)
    except ConfigurationError as e:
        log_error("Configuration error", error=str(e))
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except RepairExhaustedError as e:
        print(f"❌ {e}", file=sys.stderr)
        for attempt in e.attempts:
            print(f"  - attempt {attempt.ordinal} [{attempt.strategy}]"
                  f"{': ' + attempt.error if attempt.error else ''}", file=sys.stderr)
        if e.last_test_output:
            print("\nLast test output:\n" + e.last_test_output[-4000:], file=sys.stderr)
        return 1
    except (MenderError, requests.RequestException) as e:
        log_error("Agent failed", error=str(e))
        print(f"❌ {e}", file=sys.stderr)
        return 1

    log_info(result.get("message", "done"))
    log_agent_progress("Agent execution finished", outcome=result["outcome"].value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
