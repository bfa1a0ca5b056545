"""Configuration management using Pydantic BaseSettings.

This module provides centralized configuration management with validation,
type safety, and sensible defaults for the mender-agent. Every field maps to
the environment variable of the same name (case-insensitive) and may also be
set in a local ``.env`` file.
"""
import json
from typing import Any, Dict, List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Main configuration class combining all settings."""

    # GitHub Configuration
    github_token: str = Field("", description="GitHub token used for the REST API")
    repo: str = Field(
        "",
        validation_alias=AliasChoices("repo", "REPO", "GITHUB_REPOSITORY"),
        description="Target repository as owner/name",
    )
    github_api_url: str = Field("https://api.github.com", description="GitHub REST API base URL")
    github_timeout: int = Field(30, ge=5, le=120, description="HTTP timeout for GitHub calls in seconds")

    # Issue selection
    issue_number: str = Field("", description="Explicit issue to work on (empty = scan by label)")
    trigger_label: str = Field("copilot", description="Label marking issues the agent should pick up")

    # Git / branch configuration
    default_branch: str = Field("", description="Base branch (empty = main, falling back to master)")
    branch_prefix: str = Field("agent/issue-", description="Prefix for the per-issue working branch")
    git_user_name: str = Field("github-actions[bot]", description="Commit author name")
    git_user_email: str = Field(
        "github-actions[bot]@users.noreply.github.com", description="Commit author email"
    )

    # Test command
    test_command: str = Field("npm test", description="Shell command that runs the test suite")

    # Model-backed repair
    model_repair_enabled: bool = Field(True, description="Enable model-backed repair attempts")
    model_repair_attempts: int = Field(2, ge=0, le=5, description="Model-backed attempts after the heuristic")
    openai_api_key: str = Field("", description="OpenAI API key")
    openai_model: str = Field("gpt-4o-mini", description="OpenAI model to use")
    openai_temperature: float = Field(0.0, ge=0.0, le=2.0, description="Model temperature")
    llm_max_tokens: int = Field(4096, ge=256, le=32768, description="Max output tokens per model call")
    repair_context_globs: str = Field(
        "test/*.js,package.json", description="Comma-separated globs included in the repair snapshot"
    )
    repair_context_max_chars: int = Field(
        60000, ge=1000, le=500000, description="Upper bound on snapshot size sent to the model"
    )

    # Heuristic strategy
    heuristic_rules_json: str = Field("", description="JSON list of signature rules replacing the default set")

    # Test scaffolding
    scaffold_mode: str = Field("auto", description="auto, template or llm")
    scaffold_source_glob: str = Field("test/*.js", description="Glob selecting source units")
    scaffold_test_suffix: str = Field(".test", description="Stem suffix that marks a file as a test")
    scaffold_test_template: str = Field(
        "{parent}/{stem}.test{suffix}", description="Template deriving a test path from a source path"
    )

    # Pull request
    pr_draft: bool = Field(False, description="Open pull requests as drafts")
    pr_labels: str = Field("agent,auto-fix", description="Comma-separated labels applied to new PRs")

    # Logging / audit
    log_level: str = Field("INFO", description="Logging level")
    audit_enabled: bool = Field(True, description="Write a JSONL audit trail")
    audit_path: str = Field("~/.mender/audit_mender.jsonl", description="Audit trail location")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator('repo')
    @classmethod
    def validate_repo(cls, v: str) -> str:
        v = (v or "").strip()
        if v and (v.count("/") != 1 or v.startswith("/") or v.endswith("/")):
            raise ValueError('repo must look like "owner/name"')
        return v

    @field_validator('scaffold_mode')
    @classmethod
    def validate_scaffold_mode(cls, v: str) -> str:
        if v.lower() not in ['auto', 'template', 'llm']:
            raise ValueError('scaffold_mode must be "auto", "template" or "llm"')
        return v.lower()

    @field_validator('log_level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}. Valid options: {valid_levels}')
        return v.upper()

    @field_validator('heuristic_rules_json')
    @classmethod
    def validate_heuristic_rules(cls, v: str) -> str:
        if v.strip():
            try:
                rules = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f'Invalid JSON in heuristic_rules_json: {e}')
            if not isinstance(rules, list):
                raise ValueError('heuristic_rules_json must be a JSON list')
            for rule in rules:
                if not isinstance(rule, dict):
                    raise ValueError('each heuristic rule must be a JSON object')
                missing = [k for k in ("path", "signature", "buggy", "fixed") if not rule.get(k)]
                if missing:
                    raise ValueError(f'heuristic rule missing fields: {", ".join(missing)}')
        return v

    def get_heuristic_rules(self) -> List[Dict[str, Any]]:
        """Parse and return extra heuristic rules."""
        if not self.heuristic_rules_json.strip():
            return []
        return json.loads(self.heuristic_rules_json)

    def get_pr_labels(self) -> List[str]:
        return [s.strip() for s in self.pr_labels.split(",") if s.strip()]

    def get_repair_context_globs(self) -> List[str]:
        return [s.strip() for s in self.repair_context_globs.split(",") if s.strip()]

    @property
    def model_attempts(self) -> int:
        """Number of model-backed slots that will actually run."""
        return self.model_repair_attempts if self.model_repair_enabled else 0

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any issues."""
        issues = []

        # Check required fields
        if not self.github_token:
            issues.append("GITHUB_TOKEN is required")
        if self.model_attempts > 0 and not self.openai_api_key:
            issues.append("OPENAI_API_KEY is required when MODEL_REPAIR_ENABLED=true")
        if self.scaffold_mode == "llm" and not self.openai_api_key:
            issues.append("OPENAI_API_KEY is required when SCAFFOLD_MODE=llm")

        # Check logical constraints
        if not self.test_command.strip():
            issues.append("TEST_COMMAND must not be empty")
        if not self.branch_prefix.strip():
            issues.append("BRANCH_PREFIX must not be empty")
        if "{stem}" not in self.scaffold_test_template:
            issues.append("SCAFFOLD_TEST_TEMPLATE must contain {stem}")

        return issues

    def log_configuration(self) -> None:
        """Log the current configuration (sanitized)."""
        from mender.utils.logger import log_info

        log_info("Configuration loaded",
                 repo=self.repo or "<from git remote>",
                 trigger_label=self.trigger_label,
                 issue_number=self.issue_number or None,
                 test_command=self.test_command,
                 model_attempts=self.model_attempts,
                 openai_model=self.openai_model,
                 scaffold_mode=self.scaffold_mode,
                 pr_draft=self.pr_draft,
                 log_level=self.log_level)


# Global configuration instance (lazy loading)
_config = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment variables."""
    global _config
    _config = Config()
    return _config
