"""Response header rules applied by the security headers middleware.

Each rule owns a small set of response headers and knows how to set (or
remove) them on a single response. Rules are validated when constructed so
that a bad option fails at application startup rather than per request.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import Scope


class HeaderConfigurationError(ValueError):
    """Raised when a header rule is given an invalid option."""


class HeaderRule:
    """Base class for a rule that mutates response headers."""

    name = "headerRule"

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class HidePoweredBy(HeaderRule):
    """Strip X-Powered-By so the server stack is not advertised."""

    name = "hidePoweredBy"

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        if "x-powered-by" in headers:
            del headers["x-powered-by"]


class RemoveHeader(HeaderRule):
    """Drop a header set by an earlier rule or by the route itself."""

    name = "removeHeader"

    def __init__(self, header: str) -> None:
        if not header or not header.strip():
            raise HeaderConfigurationError("Header name must not be empty")
        self.header = header.strip().lower()

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        if self.header in headers:
            del headers[self.header]

    def __repr__(self) -> str:
        return f"RemoveHeader({self.header!r})"


class Frameguard(HeaderRule):
    """X-Frame-Options: restricts who may put the site in a frame."""

    name = "frameguard"
    _ACTIONS = ("deny", "sameorigin")

    def __init__(self, action: str = "deny") -> None:
        normalized = str(action).strip().lower().replace("-", "")
        if normalized not in self._ACTIONS:
            raise HeaderConfigurationError(
                f"X-Frame-Options action must be one of {self._ACTIONS}, got {action!r}"
            )
        self.value = normalized.upper()

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        headers["x-frame-options"] = self.value

    def __repr__(self) -> str:
        return f"Frameguard({self.value.lower()!r})"


class XssFilter(HeaderRule):
    """X-XSS-Protection: 0 turns off the legacy browser XSS auditor."""

    name = "xssFilter"

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        headers["x-xss-protection"] = "0"


class NoSniff(HeaderRule):
    """X-Content-Type-Options: nosniff keeps browsers on the declared type."""

    name = "noSniff"

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        headers["x-content-type-options"] = "nosniff"


class IeNoOpen(HeaderRule):
    """X-Download-Options: noopen (Internet Explorer 8 downloads)."""

    name = "ieNoOpen"

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        headers["x-download-options"] = "noopen"


class Hsts(HeaderRule):
    """Strict-Transport-Security.

    Only sent on https requests unless ``force`` is set, since browsers
    ignore the header over plain http anyway.
    """

    name = "hsts"

    def __init__(
        self,
        max_age: int = 180 * 24 * 60 * 60,
        include_subdomains: bool = True,
        preload: bool = False,
        force: bool = False,
    ) -> None:
        if isinstance(max_age, bool) or not isinstance(max_age, int) or max_age < 0:
            raise HeaderConfigurationError(
                f"HSTS max_age must be a non-negative integer, got {max_age!r}"
            )
        directives = [f"max-age={max_age}"]
        if include_subdomains:
            directives.append("includeSubDomains")
        if preload:
            directives.append("preload")
        self.value = "; ".join(directives)
        self.force = force

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        if self.force or scope.get("scheme") == "https":
            headers["strict-transport-security"] = self.value

    def __repr__(self) -> str:
        return f"Hsts({self.value!r}, force={self.force})"


class DnsPrefetchControl(HeaderRule):
    """X-DNS-Prefetch-Control: on/off."""

    name = "dnsPrefetchControl"

    def __init__(self, allow: bool = False) -> None:
        self.value = "on" if allow else "off"

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        headers["x-dns-prefetch-control"] = self.value


class NoCache(HeaderRule):
    """Ask browsers and proxies not to cache anything."""

    name = "noCache"

    HEADERS: tuple[tuple[str, str], ...] = (
        ("surrogate-control", "no-store"),
        ("cache-control", "no-store, no-cache, must-revalidate, proxy-revalidate"),
        ("pragma", "no-cache"),
        ("expires", "0"),
    )

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        for key, value in self.HEADERS:
            headers[key] = value


# Keywords that are only valid in a CSP source list when single-quoted.
_CSP_KEYWORDS = frozenset(
    {
        "self",
        "none",
        "unsafe-inline",
        "unsafe-eval",
        "unsafe-hashes",
        "strict-dynamic",
        "report-sample",
        "wasm-unsafe-eval",
    }
)
# Nonce and hash sources, likewise only valid when single-quoted.
_CSP_QUOTED_PREFIXES = ("nonce-", "sha256-", "sha384-", "sha512-")
_CSP_DIRECTIVE_NAME = re.compile(r"^[a-z][a-z0-9-]*$")

DEFAULT_CSP_DIRECTIVES: dict[str, tuple[str, ...]] = {
    "default-src": ("'self'",),
    "base-uri": ("'self'",),
    "font-src": ("'self'", "https:", "data:"),
    "form-action": ("'self'",),
    "frame-ancestors": ("'self'",),
    "img-src": ("'self'", "data:"),
    "object-src": ("'none'",),
    "script-src": ("'self'",),
    "script-src-attr": ("'none'",),
    "style-src": ("'self'", "https:", "'unsafe-inline'"),
    "upgrade-insecure-requests": (),
}


def _dasherize(name: str) -> str:
    """Convert ``scriptSrc`` style names to ``script-src``."""
    return re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name.strip())


def _normalize_sources(directive: str, sources: Any) -> tuple[str, ...]:
    if isinstance(sources, str):
        sources = sources.split()
    elif not isinstance(sources, Iterable):
        raise HeaderConfigurationError(
            f"CSP directive {directive!r} must be a string or a list of sources"
        )

    normalized = []
    for source in sources:
        source = str(source).strip()
        if not source:
            continue
        if ";" in source or "," in source:
            raise HeaderConfigurationError(
                f"CSP directive {directive!r} has an invalid source {source!r}"
            )
        lowered = source.lower()
        if lowered in _CSP_KEYWORDS or lowered.startswith(_CSP_QUOTED_PREFIXES):
            raise HeaderConfigurationError(
                f"CSP keyword {source!r} in {directive!r} must be single-quoted"
            )
        normalized.append(source)
    return tuple(normalized)


def build_csp(
    directives: Mapping[str, Any] | None = None, use_defaults: bool = True
) -> str:
    """Build a Content-Security-Policy header value.

    Args:
        directives: Directive name to sources. Names may be camelCase or
            kebab-case. A value of ``None`` removes the directive.
        use_defaults: Start from DEFAULT_CSP_DIRECTIVES and override them.

    Returns:
        The policy string, e.g. ``"default-src 'self'; script-src 'self'"``

    Raises:
        HeaderConfigurationError: For malformed names or sources, or when the
            resulting policy has no default-src without defaults enabled,
            or when one directive appears under two spellings.
    """
    policy: dict[str, tuple[str, ...]] = (
        dict(DEFAULT_CSP_DIRECTIVES) if use_defaults else {}
    )

    seen: set[str] = set()
    for raw_name, sources in (directives or {}).items():
        name = _dasherize(str(raw_name))
        if not _CSP_DIRECTIVE_NAME.match(name):
            raise HeaderConfigurationError(f"Invalid CSP directive name {raw_name!r}")
        if name in seen:
            raise HeaderConfigurationError(f"CSP directive {name!r} is given twice")
        seen.add(name)
        if sources is None:
            policy.pop(name, None)
            continue
        policy[name] = _normalize_sources(name, sources)

    if not policy:
        raise HeaderConfigurationError("Content-Security-Policy has no directives")
    if not use_defaults and "default-src" not in policy:
        raise HeaderConfigurationError(
            "Content-Security-Policy needs a default-src directive"
        )

    return "; ".join(
        " ".join((name, *sources)) if sources else name
        for name, sources in policy.items()
    )


class ContentSecurityPolicy(HeaderRule):
    """Content-Security-Policy built from a directive mapping."""

    name = "contentSecurityPolicy"

    def __init__(
        self,
        directives: Mapping[str, Any] | None = None,
        use_defaults: bool = True,
        report_only: bool = False,
    ) -> None:
        self.value = build_csp(directives, use_defaults=use_defaults)
        self.header = (
            "content-security-policy-report-only"
            if report_only
            else "content-security-policy"
        )

    def apply(self, headers: MutableHeaders, scope: Scope) -> None:
        headers[self.header] = self.value

    def __repr__(self) -> str:
        return f"ContentSecurityPolicy({self.value!r})"
