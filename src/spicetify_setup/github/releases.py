"""GitHub "latest release" lookups and asset downloads."""

import ssl
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import httpx
import truststore
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..config import DEFAULT_REQUEST_TIMEOUT
from ..errors import FailureKind, ReleaseFetchError
from ..utils.console import _get_console, _rich_warning
from ..version import get_version


GITHUB_API_URL = "https://api.github.com"

ssl_context = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)


@dataclass
class ReleaseAsset:
    name: str
    download_url: str
    size: int = 0


@dataclass
class ReleaseInfo:
    tag_name: str
    assets: List[ReleaseAsset] = field(default_factory=list)

    @property
    def version(self) -> str:
        return self.tag_name.lstrip("v")

    def find_asset(self, suffix: str) -> Optional[ReleaseAsset]:
        """First asset whose name ends with `suffix`."""
        for asset in self.assets:
            if asset.name.endswith(suffix):
                return asset
        return None

    @classmethod
    def from_json(cls, data: dict) -> "ReleaseInfo":
        assets = [
            ReleaseAsset(
                name=asset.get("name", ""),
                download_url=asset.get("browser_download_url", ""),
                size=asset.get("size", 0) or 0,
            )
            for asset in data.get("assets", [])
        ]
        return cls(tag_name=data.get("tag_name", ""), assets=assets)


def make_client(skip_tls: bool = False, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> httpx.Client:
    """Create an httpx client that trusts the system certificate store."""
    return httpx.Client(
        verify=False if skip_tls else ssl_context,
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": f"spicetify-setup/{get_version()}"},
    )


def _auth_headers(token: Optional[str]) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


def classify_response(response: httpx.Response) -> FailureKind:
    """Tell an invalid token apart from an exhausted rate limit."""
    status = response.status_code
    if status == 401:
        return FailureKind.UNAUTHORIZED
    if status in (403, 429):
        remaining = response.headers.get("x-ratelimit-remaining")
        if status == 429 or remaining == "0" or "rate limit" in response.text.lower():
            return FailureKind.RATE_LIMITED
        return FailureKind.UNAUTHORIZED
    return FailureKind.UNKNOWN


def _get_json(client: httpx.Client, url: str, token: Optional[str], debug: bool = False) -> dict:
    headers = {"Accept": "application/vnd.github+json", **_auth_headers(token)}
    try:
        response = client.get(url, headers=headers)
    except httpx.TimeoutException as e:
        raise ReleaseFetchError(f"Timed out contacting {url}", FailureKind.TIMEOUT) from e
    except httpx.HTTPError as e:
        raise ReleaseFetchError(f"Could not reach {url}: {e}") from e

    if response.status_code != 200:
        msg = f"GitHub API returned {response.status_code} for {url}"
        if debug:
            msg += f"\nResponse headers: {response.headers}\nBody (truncated 500): {response.text[:500]}"
        raise ReleaseFetchError(msg, classify_response(response), response.status_code)

    try:
        return response.json()
    except ValueError as e:
        raise ReleaseFetchError(f"Failed to parse release JSON: {e}\nRaw (truncated 400): {response.text[:400]}") from e


def fetch_latest_release(owner: str, repo: str, *, token: Optional[str] = None,
                         client: Optional[httpx.Client] = None, debug: bool = False) -> ReleaseInfo:
    """Fetch the latest release of `owner/repo`.

    An authenticated request rejected as unauthorized or rate limited is
    retried once without the token, and that result is used.

    Raises:
        ReleaseFetchError: If the release cannot be fetched
    """
    if client is None:
        client = make_client()
    url = f"{GITHUB_API_URL}/repos/{owner}/{repo}/releases/latest"

    try:
        data = _get_json(client, url, token, debug)
    except ReleaseFetchError as e:
        if not token or e.kind not in (FailureKind.UNAUTHORIZED, FailureKind.RATE_LIMITED):
            raise
        reason = "invalid" if e.kind is FailureKind.UNAUTHORIZED else "rate limited"
        _rich_warning(f"GitHub token {reason}; retrying without authentication")
        data = _get_json(client, url, None, debug)

    return ReleaseInfo.from_json(data)


def validate_token(token: str, client: Optional[httpx.Client] = None) -> bool:
    """Check a token against the GitHub user endpoint.

    Returns:
        bool: True if GitHub accepts the token, False on 401

    Raises:
        ReleaseFetchError: For any other failure (network, rate limit)
    """
    if client is None:
        client = make_client()
    try:
        _get_json(client, f"{GITHUB_API_URL}/user", token)
    except ReleaseFetchError as e:
        if e.kind is FailureKind.UNAUTHORIZED and e.status_code == 401:
            return False
        raise
    return True


def download_asset(asset: ReleaseAsset, download_dir: Path, *, client: Optional[httpx.Client] = None,
                   show_progress: bool = True, debug: bool = False) -> Path:
    """Stream a release asset into `download_dir`.

    Raises:
        ReleaseFetchError: If the download fails; partial files are removed
    """
    if client is None:
        client = make_client()
    target = Path(download_dir) / asset.name
    try:
        _stream_to_file(client, asset.download_url, target, show_progress)
    except (httpx.HTTPError, OSError, ReleaseFetchError) as e:
        if target.exists():
            target.unlink()
        if debug:
            _get_console().print(Panel(str(e), title="Download Error", border_style="red"))
        if isinstance(e, ReleaseFetchError):
            raise
        kind = FailureKind.TIMEOUT if isinstance(e, httpx.TimeoutException) else FailureKind.UNKNOWN
        raise ReleaseFetchError(f"Error downloading {asset.name}: {e}", kind) from e
    return target


def download_file(url: str, target: Path, *, client: Optional[httpx.Client] = None,
                  show_progress: bool = True) -> Path:
    """Stream an arbitrary URL to `target`."""
    if client is None:
        client = make_client()
    target = Path(target)
    try:
        _stream_to_file(client, url, target, show_progress)
    except (httpx.HTTPError, OSError) as e:
        if target.exists():
            target.unlink()
        kind = FailureKind.TIMEOUT if isinstance(e, httpx.TimeoutException) else FailureKind.UNKNOWN
        raise ReleaseFetchError(f"Error downloading {url}: {e}", kind) from e
    return target


def _stream_to_file(client: httpx.Client, url: str, target: Path, show_progress: bool) -> None:
    with client.stream("GET", url) as response:
        if response.status_code != 200:
            response.read()
            raise ReleaseFetchError(
                f"Download failed with {response.status_code} for {url}",
                classify_response(response),
                response.status_code,
            )
        total_size = int(response.headers.get("content-length", 0))
        with open(target, "wb") as f:
            if total_size == 0 or not show_progress:
                for chunk in response.iter_bytes(chunk_size=8192):
                    f.write(chunk)
                return
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
                console=_get_console(),
            ) as progress:
                task = progress.add_task(f"Downloading {target.name}...", total=total_size)
                downloaded = 0
                for chunk in response.iter_bytes(chunk_size=8192):
                    f.write(chunk)
                    downloaded += len(chunk)
                    progress.update(task, completed=downloaded)
