from __future__ import annotations

import locale
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import httpx

from ai_say.core.errors import CatalogFetchError, VoiceNotFound
from ai_say.core.logging import get_logger

PAGE_SIZE = 100

_VOICE_ID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class VoiceRecord:
    id: str
    name: str
    is_public: bool


def is_voice_id(reference: str) -> bool:
    return bool(_VOICE_ID_RE.match(reference or ""))


class VoiceCatalog:
    """
    Read-only view of the remote voice catalog.

    Every call pages through the whole catalog; nothing is cached between calls.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        version: str,
        timeout_seconds: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._version = version
        self._timeout = float(timeout_seconds)
        self._transport = transport
        self._log = get_logger(component="voice_catalog")

    async def fetch_all(self) -> List[VoiceRecord]:
        url = "%s/voices" % self._base_url
        headers: Dict[str, str] = {
            "X-API-Key": self._api_key,
            "Cartesia-Version": self._version,
        }
        records: List[VoiceRecord] = []
        cursor: Optional[str] = None

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            while True:
                params: Dict[str, Any] = {"limit": PAGE_SIZE}
                if cursor:
                    params["starting_after"] = cursor
                page, has_more = await self._fetch_page(client, url, headers, params)
                records.extend(page)
                self._log.debug("catalog_page", size=len(page), total=len(records), has_more=has_more)
                if not has_more:
                    break
                if not page:
                    # A cursor can only come from the last record of a page.
                    raise CatalogFetchError("Voice catalog reported more pages but returned none")
                cursor = page[-1].id

        return records

    async def list_public(self) -> Iterator[Tuple[str, str]]:
        """
        Public voices as (id, name) pairs, ordered by display name then id.
        """
        records = await self.fetch_all()
        public = [r for r in records if r.is_public]
        public.sort(key=lambda r: (_collation_key(r.name), r.name, r.id))
        return ((r.id, r.name) for r in public)

    async def _fetch_page(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: Dict[str, str],
        params: Dict[str, Any],
    ) -> Tuple[List[VoiceRecord], bool]:
        try:
            resp = await client.get(url, headers=headers, params=params)
        except httpx.HTTPError as e:
            raise CatalogFetchError("Failed to fetch voices: %s" % (str(e) or type(e).__name__)) from e

        if not resp.is_success:
            body = ""
            try:
                body = resp.text.strip()
            except Exception:
                body = ""
            detail = "%d %s" % (resp.status_code, resp.reason_phrase)
            if body:
                detail = "%s: %s" % (detail, body[:500])
            raise CatalogFetchError("Failed to fetch voices: %s" % detail)

        try:
            data = resp.json()
        except ValueError as e:
            raise CatalogFetchError("Failed to fetch voices: response is not JSON") from e
        if not isinstance(data, dict):
            raise CatalogFetchError("Failed to fetch voices: unexpected response shape")

        items = data.get("data") or []
        page: List[VoiceRecord] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            page.append(_parse_voice(item))
        return page, bool(data.get("has_more"))


def _parse_voice(item: Dict[str, Any]) -> VoiceRecord:
    return VoiceRecord(
        id=str(item.get("id") or "").strip(),
        name=str(item.get("name") or "").strip(),
        is_public=bool(item.get("is_public")),
    )


def use_environment_collation() -> None:
    """
    Collate names by the user's locale (LC_ALL / LC_COLLATE / LANG) instead of "C".
    """
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        pass  # unknown or uninstalled locale: keep "C"


def _collation_key(name: str) -> Tuple[str, str]:
    # Base letters first so "Émile" files under E even in the "C" locale;
    # the locale transform then orders names that differ only by accents.
    folded = name.casefold()
    base = "".join(
        c for c in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(c)
    )
    return (base, locale.strxfrm(folded))


def match_voice(reference: str, records: List[VoiceRecord]) -> Optional[VoiceRecord]:
    """
    First hit wins: exact id, then exact name, then name containing the reference.
    Name comparisons ignore case.
    """
    for r in records:
        if r.id == reference:
            return r

    needle = reference.casefold()
    for r in records:
        if r.name.casefold() == needle:
            return r
    for r in records:
        if needle in r.name.casefold():
            return r
    return None


class VoiceResolver:
    def __init__(self, catalog: VoiceCatalog) -> None:
        self._catalog = catalog
        self._log = get_logger(component="voice_resolver")

    async def resolve(self, reference: str) -> str:
        ref = (reference or "").strip()
        if is_voice_id(ref):
            return ref
        if not ref:
            raise VoiceNotFound(ref)

        self._log.info("voice_resolving", voice=ref)
        records = await self._catalog.fetch_all()
        match = match_voice(ref, records)
        if match is None:
            raise VoiceNotFound(ref)
        self._log.info("voice_resolved", voice=ref, id=match.id, name=match.name)
        return match.id
