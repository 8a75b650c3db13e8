"""
Repository reference resolution.

Maps shorthands such as ``user/repo``, ``gitlab:group/repo#v1.2`` or full
hosting URLs to the provider's tarball download URL, following the
conventions of npm's hosted-git-info.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlsplit

from tarclone.exceptions import ResolutionError
from tarclone.types.providers import ProviderDescriptor, ProviderType

DEFAULT_COMMITTISH = "HEAD"


class Resolver(ABC):
    """Abstract base class for reference resolvers."""

    @abstractmethod
    def resolve(self, reference: str) -> ProviderDescriptor:
        """
        Resolve a reference to a provider descriptor.

        Raises:
            ResolutionError: If no tarball URL can be determined
        """
        pass


@dataclass(frozen=True)
class HostInfo:
    """How one hosting provider lays out its tarball URLs."""

    provider: ProviderType
    domain: str
    tarball_template: str

    def tarball_url(self, user: str | None, project: str, committish: str) -> str:
        return self.tarball_template.format(
            user=quote(user or "", safe="/"),
            project=quote(project, safe=""),
            committish=quote(committish, safe=""),
        )


HOSTS: dict[ProviderType, HostInfo] = {
    ProviderType.GITHUB: HostInfo(
        ProviderType.GITHUB,
        "github.com",
        "https://codeload.github.com/{user}/{project}/tar.gz/{committish}",
    ),
    ProviderType.GIST: HostInfo(
        ProviderType.GIST,
        "gist.github.com",
        "https://codeload.github.com/gist/{project}/tar.gz/{committish}",
    ),
    ProviderType.GITLAB: HostInfo(
        ProviderType.GITLAB,
        "gitlab.com",
        "https://gitlab.com/{user}/{project}/repository/archive.tar.gz?ref={committish}",
    ),
    ProviderType.BITBUCKET: HostInfo(
        ProviderType.BITBUCKET,
        "bitbucket.org",
        "https://bitbucket.org/{user}/{project}/get/{committish}.tar.gz",
    ),
    ProviderType.SOURCEHUT: HostInfo(
        ProviderType.SOURCEHUT,
        "git.sr.ht",
        "https://git.sr.ht/~{user}/{project}/archive/{committish}.tar.gz",
    ),
}

_DOMAINS = {info.domain: provider for provider, info in HOSTS.items()}

_URL_SCHEMES = {"https", "http", "git", "git+https", "git+http", "git+ssh", "ssh"}

# github:user/repo, gitlab:group/repo, gist:id, ...
_SHORTHAND_PREFIX = re.compile(r"^(?P<provider>github|gitlab|bitbucket|gist|sourcehut):(?P<path>[^/].*)$")

# user/repo (GitHub)
_BARE_SHORTHAND = re.compile(r"^(?P<user>[^/:@\s.~][^/:@\s]*)/(?P<project>[^/:@\s]+)$")

# git@github.com:user/repo.git
_SCP_LIKE = re.compile(r"^(?:[^@/\s]+@)?(?P<host>[^:/\s]+):(?P<path>[^/\s].*)$")

_SEGMENT = re.compile(r"^[^\s/]+$")


def _strip_git_suffix(project: str) -> str:
    return project[:-4] if project.endswith(".git") else project


class HostedGitResolver(Resolver):
    """
    Resolver for the well-known git hosting providers.

    Example:
        ```python
        resolver = HostedGitResolver()
        descriptor = resolver.resolve("github:octocat/hello-world#main")
        descriptor.tarball_url
        # 'https://codeload.github.com/octocat/hello-world/tar.gz/main'
        ```
    """

    def resolve(self, reference: str) -> ProviderDescriptor:
        """
        Resolve a shorthand or URL to a ProviderDescriptor.

        Args:
            reference: Repository shorthand or URL, optionally with a
                ``#committish`` suffix

        Returns:
            ProviderDescriptor with a non-empty tarball URL

        Raises:
            ResolutionError: If the reference is not a recognized hosted repository
        """
        if not isinstance(reference, str) or not reference.strip():
            raise ResolutionError(str(reference), "Repository reference is empty")

        raw, _, fragment = reference.strip().partition("#")
        committish = unquote(fragment) if fragment else None

        match = _SHORTHAND_PREFIX.match(raw)
        if match:
            provider = ProviderType(match.group("provider"))
            user, project = self._split_path(provider, match.group("path").split("/"), reference)
            return self._describe(provider, user, project, committish, reference)

        if "://" in raw:
            return self._resolve_url(raw, committish, reference)

        match = _SCP_LIKE.match(raw)
        if match and match.group("host").lower() in _DOMAINS:
            provider = _DOMAINS[match.group("host").lower()]
            user, project = self._split_path(provider, match.group("path").split("/"), reference)
            return self._describe(provider, user, project, committish, reference)

        match = _BARE_SHORTHAND.match(raw)
        if match:
            return self._describe(
                ProviderType.GITHUB,
                match.group("user"),
                _strip_git_suffix(match.group("project")),
                committish,
                reference,
            )

        raise ResolutionError(reference)

    def _resolve_url(
        self, raw: str, committish: str | None, reference: str
    ) -> ProviderDescriptor:
        parts = urlsplit(raw)
        host = (parts.hostname or "").lower()
        if host.startswith("www."):
            host = host[4:]

        if parts.scheme.lower() not in _URL_SCHEMES or host not in _DOMAINS:
            raise ResolutionError(reference)

        provider = _DOMAINS[host]
        segments = [unquote(s) for s in parts.path.split("/") if s]

        if provider is ProviderType.GITHUB and len(segments) > 3 and segments[2] == "tree":
            committish = committish or "/".join(segments[3:])
            segments = segments[:2]
        elif provider is ProviderType.GITLAB and "-" in segments:
            marker = segments.index("-")
            tail = segments[marker + 1:]
            if len(tail) > 1 and tail[0] == "tree":
                committish = committish or "/".join(tail[1:])
            segments = segments[:marker]

        user, project = self._split_path(provider, segments, reference)
        return self._describe(provider, user, project, committish, reference)

    def _split_path(
        self, provider: ProviderType, segments: list[str], reference: str
    ) -> tuple[str | None, str]:
        segments = [s for s in segments if s]
        if not segments or not all(_SEGMENT.match(s) for s in segments):
            raise ResolutionError(reference)

        if provider is ProviderType.GIST:
            if len(segments) > 2:
                raise ResolutionError(reference)
            user = segments[0] if len(segments) == 2 else None
            return user, _strip_git_suffix(segments[-1])

        if provider is ProviderType.GITLAB:
            if len(segments) < 2:
                raise ResolutionError(reference)
            return "/".join(segments[:-1]), _strip_git_suffix(segments[-1])

        if len(segments) != 2:
            raise ResolutionError(reference)

        user, project = segments
        if provider is ProviderType.SOURCEHUT:
            user = user.lstrip("~")
            if not user:
                raise ResolutionError(reference)
        return user, _strip_git_suffix(project)

    def _describe(
        self,
        provider: ProviderType,
        user: str | None,
        project: str,
        committish: str | None,
        reference: str,
    ) -> ProviderDescriptor:
        if not project:
            raise ResolutionError(reference)

        url = HOSTS[provider].tarball_url(user, project, committish or DEFAULT_COMMITTISH)
        return ProviderDescriptor(
            provider=provider,
            tarball_url=url,
            user=user,
            project=project,
            committish=committish,
        )
