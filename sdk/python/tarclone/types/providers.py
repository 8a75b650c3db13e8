"""Hosting provider data models."""

from dataclasses import dataclass
from enum import Enum


class ProviderType(str, Enum):
    """Hosting providers the built-in resolver knows about."""

    GITHUB = "github"
    GIST = "gist"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    SOURCEHUT = "sourcehut"

    @property
    def supports_token_auth(self) -> bool:
        """Whether GITHUB_TOKEN may be sent to this provider."""
        return self in _TOKEN_AUTH_PROVIDERS


_TOKEN_AUTH_PROVIDERS = frozenset({ProviderType.GITHUB, ProviderType.GIST})


def supports_token_auth(provider: "ProviderType | str") -> bool:
    """
    Check the token-auth capability for any provider tag.

    Tags outside ProviderType are allowed (external resolvers may return
    them) and never receive a token.
    """
    try:
        return ProviderType(provider).supports_token_auth
    except ValueError:
        return False


@dataclass(frozen=True)
class ProviderDescriptor:
    """Result of resolving a repository reference."""

    provider: ProviderType | str
    tarball_url: str
    user: str | None = None
    project: str | None = None
    committish: str | None = None

    @property
    def provider_tag(self) -> str:
        if isinstance(self.provider, ProviderType):
            return self.provider.value
        return str(self.provider)
