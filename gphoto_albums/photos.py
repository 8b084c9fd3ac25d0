from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials

from .utils import RetryPolicy, with_retries


PHOTOS_API = "https://photoslibrary.googleapis.com/v1"

ALBUM_COLUMNS = ("id", "title", "mediaItemsCount")


@dataclass(frozen=True)
class AlbumsPage:
    albums: list[dict]
    next_page_token: Optional[str]


class PhotosClient:
    def __init__(
        self,
        *,
        access_token: str,
        timeout_s: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._session = session or AuthorizedSession(Credentials(token=access_token))

    def list_albums(self, *, page_size: int = 50, policy: RetryPolicy = RetryPolicy()) -> Iterator[dict]:
        page_token: Optional[str] = None
        while True:
            page = self._list_once(page_size=page_size, page_token=page_token, policy=policy)
            yield from page.albums
            if not page.next_page_token:
                break
            page_token = page.next_page_token

    def _list_once(self, *, page_size: int, page_token: Optional[str], policy: RetryPolicy) -> AlbumsPage:
        url = f"{PHOTOS_API}/albums"
        params: dict = {"pageSize": page_size}
        if page_token:
            params["pageToken"] = page_token

        def _once() -> AlbumsPage:
            r = self._session.get(url, params=params, timeout=self._timeout_s)
            try:
                r.raise_for_status()
            except requests.HTTPError as e:
                detail = (r.text or "").strip()
                if detail:
                    if len(detail) > 2000:
                        detail = detail[:2000] + "...(truncated)"
                    raise requests.HTTPError(f"{e} | body={detail}", response=r) from e
                raise
            data = r.json()
            return AlbumsPage(
                albums=data.get("albums", []) or [],
                next_page_token=data.get("nextPageToken"),
            )

        return with_retries(_once, retry_on=(requests.RequestException,), policy=policy)


def format_albums_table(albums: Iterable[dict], columns: tuple[str, ...] = ALBUM_COLUMNS) -> str:
    rows = [[str(a.get(c, "")) for c in columns] for a in albums]
    widths = [max([len(c)] + [len(row[i]) for row in rows]) for i, c in enumerate(columns)]

    def _line(cells: list[str]) -> str:
        return "  ".join(cell.ljust(w) for cell, w in zip(cells, widths)).rstrip()

    lines = [_line(list(columns)), _line(["-" * w for w in widths])]
    lines += [_line(row) for row in rows]
    return "\n".join(lines)
