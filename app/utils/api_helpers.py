"""Small helpers shared by the HTML and API routes."""

from dataclasses import dataclass, field
from urllib.parse import quote, urlencode, urlparse

from fastapi import Request


@dataclass(frozen=True)
class Pagination:
    """Page arithmetic for the admin paper list.

    Attributes:
        page: Current page, 1-indexed.
        page_size: Rows per page.
        total: Number of matching rows.
        query: Other query parameters (filters) kept on page links.
    """

    page: int
    page_size: int
    total: int
    query: dict[str, str] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total // self.page_size))

    @property
    def start(self) -> int:
        return (self.page - 1) * self.page_size + 1 if self.total else 0

    @property
    def end(self) -> int:
        return min(self.page * self.page_size, self.total)

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def page_url(self, page: int) -> str:
        params = {**self.query, "page": page, "page_size": self.page_size}
        return "?" + urlencode(params)

    @classmethod
    def from_request(
        cls, request: Request, page: int, page_size: int, total: int
    ) -> "Pagination":
        query = {
            key: value
            for key, value in request.query_params.items()
            if key not in ("page", "page_size") and value != ""
        }
        return cls(page=page, page_size=page_size, total=total, query=query)


def is_safe_redirect_url(url: str) -> bool:
    """Whether ``url`` is a path on this site.

    Absolute and scheme-relative URLs are refused, including the ``/\\host``
    form browsers treat like ``//host``.
    """
    if not url or not url.startswith("/") or "\\" in url:
        return False
    parsed = urlparse(url)
    return not (parsed.scheme or parsed.netloc) and not url.startswith("//")


def get_safe_redirect_url(url: str, default: str = "/login") -> str:
    return url if is_safe_redirect_url(url) else default


def client_key(request: Request) -> str:
    """Identify the calling client for rate limiting.

    Uses the first ``X-Forwarded-For`` hop when present (deployments sit
    behind a reverse proxy), else the socket peer address.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def content_disposition(filename: str) -> str:
    """Build an attachment header value that survives non-ASCII names."""
    quoted = quote(filename, safe="")
    return f"attachment; filename=\"{quoted}\"; filename*=UTF-8''{quoted}"
