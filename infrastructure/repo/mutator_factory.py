from application.ports import ContentMutator
from domain.errors import ConfigError
from domain.models import RewriteRule
from infrastructure.repo.content_rewriter import PatternRewriter
from infrastructure.repo.external_updater import ExternalUpdater


DEFAULT_MUTATION_STRATEGY = "rewrite"
SUPPORTED_MUTATION_STRATEGIES = ("rewrite", "updater")


def resolve_mutation_strategy(raw_strategy: str | None) -> str:
    strategy = (raw_strategy or DEFAULT_MUTATION_STRATEGY).strip().lower()
    if strategy not in SUPPORTED_MUTATION_STRATEGIES:
        supported = ", ".join(SUPPORTED_MUTATION_STRATEGIES)
        raise ConfigError(f"Invalid MUTATION_STRATEGY '{strategy}'. Supported values: {supported}")
    return strategy


def build_content_mutator(
    strategy: str,
    *,
    rewrite_rule: RewriteRule,
    updater_command: str,
) -> ContentMutator:
    if resolve_mutation_strategy(strategy) == "updater":
        return ExternalUpdater.from_command_line(updater_command)
    return PatternRewriter(rule=rewrite_rule)
