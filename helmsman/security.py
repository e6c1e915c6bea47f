"""Assembles the ordered security header chain from settings."""

from collections.abc import Iterable

from helmsman.config import Settings
from helmsman.middleware.header_rules import (
    ContentSecurityPolicy,
    DnsPrefetchControl,
    Frameguard,
    HeaderRule,
    HidePoweredBy,
    Hsts,
    IeNoOpen,
    NoCache,
    NoSniff,
    RemoveHeader,
    XssFilter,
)


def build_header_rules(settings: Settings) -> tuple[HeaderRule, ...]:
    """Build the header rules in the order they are applied to responses.

    Raises:
        HeaderConfigurationError: If any configured option is invalid.
    """
    rules: list[HeaderRule] = [
        HidePoweredBy(),
        Frameguard(action=settings.frameguard_action),
        XssFilter(),
        NoSniff(),
        IeNoOpen(),
    ]

    if settings.hsts_enabled:
        rules.append(Hsts(max_age=settings.hsts_max_age, force=settings.hsts_force))
    else:
        # Also drops any HSTS header a route or upstream app set
        rules.append(RemoveHeader("Strict-Transport-Security"))

    rules.append(DnsPrefetchControl(allow=settings.dns_prefetch_allow))

    if settings.no_cache:
        rules.append(NoCache())

    rules.append(
        ContentSecurityPolicy(
            directives=settings.csp_directives,
            use_defaults=settings.csp_use_defaults,
            report_only=settings.csp_report_only,
        )
    )
    return tuple(rules)


def describe_header_rules(rules: Iterable[HeaderRule]) -> list[str]:
    """Names of the rules in application order."""
    return [rule.name for rule in rules]
