# Copyright 2025 Entalpic
"""Utility functions related to GitHub releases."""

from __future__ import annotations

from github import Github, GithubException
from github.Auth import Token
from keyring import get_password
from keyring.errors import KeyringError
from requests.exceptions import RequestException

from agentation_update.utils.common import logger
from agentation_update.utils.config import GITHUB_RELEASE_DOWNLOAD, GITHUB_REPO

KEYRING_SERVICE = "agentation-update"
"""Keyring service under which the GitHub PAT is stored."""


def get_user_pat() -> str | None:
    """Get the GitHub Personal Access Token (PAT) stored in the keyring.

    Returns
    -------
    str | None
        The PAT, or ``None`` if none is stored or the keyring is unavailable.
    """
    try:
        return get_password(KEYRING_SERVICE, "github_pat")
    except KeyringError:
        return None


def release_download_url(repo: str, tag: str, asset: str) -> str:
    """URL of a release asset.

    Pinning the tag (rather than using ``releases/latest/download``) guarantees
    the archive matches the version recorded afterwards.
    """
    return f"{GITHUB_RELEASE_DOWNLOAD.format(repo=repo)}/{tag}/{asset}"


class GithubReleaseFeed:
    """Query the latest published release of a repository.

    Parameters
    ----------
    repo : str, optional
        ``owner/name`` of the repository.
    timeout : float, optional
        Timeout for the HTTP requests in seconds, by default 10.0.
    """

    def __init__(self, repo: str = GITHUB_REPO, timeout: float = 10.0):
        self.repo = repo
        self.timeout = timeout

    def _fetch_tag(self, g: Github) -> str | None:
        release = g.get_repo(self.repo).get_latest_release()
        return release.tag_name or None

    def latest_tag(self) -> str | None:
        """Tag name of the latest release.

        First tries without authentication (public repo), then falls back to
        PAT authentication if rate-limited or if access is denied.

        Returns
        -------
        str | None
            The tag (e.g. ``"v1.3.0"``), or ``None`` if the query failed or the
            repository has no release.
        """
        try:
            return self._fetch_tag(Github(timeout=int(self.timeout)))
        except GithubException as e:
            # 403 often means rate limited, will try with auth
            if e.status != 403:
                logger.warning(f"Failed to fetch latest release of {self.repo}: {e}")
                return None
        except RequestException as e:
            logger.warning(f"Could not reach GitHub: {e}")
            return None

        pat = get_user_pat()
        if not pat:
            logger.warning("GitHub API rate limit reached and no PAT is stored.")
            return None
        try:
            g = Github(auth=Token(pat), timeout=int(self.timeout))
            return self._fetch_tag(g)
        except (GithubException, RequestException) as e:
            logger.warning(f"Failed to fetch latest release of {self.repo}: {e}")
        return None
