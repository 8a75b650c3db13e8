"""
Tests for repository reference resolution.

Feature: tarclone
"""

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tarclone.exceptions import ResolutionError
from tarclone.resolver import HostedGitResolver
from tarclone.types.providers import ProviderType

name_strategy = st.text(
    min_size=1,
    max_size=30,
    alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd"), whitelist_characters="-_"),
)

ascii_name_strategy = st.text(
    min_size=1,
    max_size=30,
    alphabet=st.sampled_from(string.ascii_letters + string.digits + "-_"),
)

resolver = HostedGitResolver()


@pytest.mark.parametrize(
    "reference, provider, tarball_url",
    [
        (
            "octocat/hello-world",
            ProviderType.GITHUB,
            "https://codeload.github.com/octocat/hello-world/tar.gz/HEAD",
        ),
        (
            "github:octocat/hello-world#v1.0.0",
            ProviderType.GITHUB,
            "https://codeload.github.com/octocat/hello-world/tar.gz/v1.0.0",
        ),
        (
            "https://github.com/octocat/hello-world.git",
            ProviderType.GITHUB,
            "https://codeload.github.com/octocat/hello-world/tar.gz/HEAD",
        ),
        (
            "git@github.com:octocat/hello-world.git#main",
            ProviderType.GITHUB,
            "https://codeload.github.com/octocat/hello-world/tar.gz/main",
        ),
        (
            "git+ssh://git@github.com/octocat/hello-world.git",
            ProviderType.GITHUB,
            "https://codeload.github.com/octocat/hello-world/tar.gz/HEAD",
        ),
        (
            "https://github.com/octocat/hello-world/tree/feature/x",
            ProviderType.GITHUB,
            "https://codeload.github.com/octocat/hello-world/tar.gz/feature%2Fx",
        ),
        (
            "gitlab:group/sub/project",
            ProviderType.GITLAB,
            "https://gitlab.com/group/sub/project/repository/archive.tar.gz?ref=HEAD",
        ),
        (
            "https://gitlab.com/group/project/-/tree/develop",
            ProviderType.GITLAB,
            "https://gitlab.com/group/project/repository/archive.tar.gz?ref=develop",
        ),
        (
            "bitbucket:team/repo#abc123",
            ProviderType.BITBUCKET,
            "https://bitbucket.org/team/repo/get/abc123.tar.gz",
        ),
        (
            "https://bitbucket.org/team/repo",
            ProviderType.BITBUCKET,
            "https://bitbucket.org/team/repo/get/HEAD.tar.gz",
        ),
        (
            "gist:feedbeef",
            ProviderType.GIST,
            "https://codeload.github.com/gist/feedbeef/tar.gz/HEAD",
        ),
        (
            "https://gist.github.com/octocat/feedbeef",
            ProviderType.GIST,
            "https://codeload.github.com/gist/feedbeef/tar.gz/HEAD",
        ),
        (
            "sourcehut:~sircmpwn/scdoc",
            ProviderType.SOURCEHUT,
            "https://git.sr.ht/~sircmpwn/scdoc/archive/HEAD.tar.gz",
        ),
        (
            "https://git.sr.ht/~sircmpwn/scdoc#1.11.0",
            ProviderType.SOURCEHUT,
            "https://git.sr.ht/~sircmpwn/scdoc/archive/1.11.0.tar.gz",
        ),
    ],
)
def test_resolve_known_references(
    reference: str, provider: ProviderType, tarball_url: str
) -> None:
    """Shorthands and URLs map to the provider's tarball URL."""
    descriptor = resolver.resolve(reference)

    assert descriptor.provider is provider
    assert descriptor.tarball_url == tarball_url


@pytest.mark.parametrize(
    "reference",
    [
        "",
        "   ",
        "just-a-name",
        "./relative/path",
        "/absolute/path",
        "~/home/path",
        "https://example.com/user/repo",
        "ftp://github.com/user/repo",
        "https://github.com/user/repo/issues/1",
        "github:onlyuser",
        "gitlab:project",
        "gist:user/id/extra",
    ],
)
def test_resolve_rejects_unsupported_references(reference: str) -> None:
    """Anything that is not a hosted repository fails resolution."""
    with pytest.raises(ResolutionError) as exc_info:
        resolver.resolve(reference)

    assert exc_info.value.code == "UNSUPPORTED_REFERENCE"


def test_resolve_keeps_resolution_details() -> None:
    """The descriptor records user, project and committish."""
    descriptor = resolver.resolve("github:octocat/hello-world#v2")

    assert descriptor.user == "octocat"
    assert descriptor.project == "hello-world"
    assert descriptor.committish == "v2"
    assert descriptor.provider_tag == "github"


@given(user=name_strategy, project=name_strategy)
@settings(max_examples=100)
def test_property_bare_shorthand_resolves_to_github(user: str, project: str) -> None:
    """
    Property: every ``user/project`` shorthand resolves to a non-empty
    GitHub codeload URL at HEAD.
    """
    descriptor = resolver.resolve(f"{user}/{project}")

    assert descriptor.provider is ProviderType.GITHUB
    assert descriptor.tarball_url
    assert descriptor.tarball_url.startswith("https://codeload.github.com/")
    assert descriptor.tarball_url.endswith("/tar.gz/HEAD")


@given(
    provider=st.sampled_from(["github", "gitlab", "bitbucket"]),
    user=ascii_name_strategy,
    project=ascii_name_strategy,
    committish=ascii_name_strategy,
)
@settings(max_examples=100)
def test_property_committish_is_carried_into_url(
    provider: str, user: str, project: str, committish: str
) -> None:
    """
    Property: a ``#committish`` suffix always selects that ref in the
    tarball URL instead of HEAD.
    """
    descriptor = resolver.resolve(f"{provider}:{user}/{project}#{committish}")

    assert descriptor.committish == committish
    assert committish in descriptor.tarball_url
    assert descriptor.tarball_url.startswith("https://")
