# wiki_client.py
# -------------------------------------------------------------------
# Resolve a Wikipedia page and read the few facts we keep about it:
# canonical URL, backlinks, external references and infobox dates.
# Talks to the MediaWiki Action API; every failure is raised.
# -------------------------------------------------------------------

import os
import re
from typing import Any, Dict, Iterator, List, Optional

import requests
from bs4 import BeautifulSoup

from legends_store import LegendError

WIKI_API_URL = os.getenv("WIKI_API_URL", "https://en.wikipedia.org/w/api.php")
TIMEOUT = float(os.getenv("WIKI_TIMEOUT", "20"))
UA = {"User-Agent": "LegendEnricher/0.1 (resumable legends metadata fetch)"}


class PageNotFound(LegendError):
    pass


class MalformedResponse(LegendError):
    pass


# ----------------------------- HTTP helpers ----------------------------- #
def _get_json(session, api_url, params, timeout=TIMEOUT):
    q = dict(params, format="json", formatversion="2")
    r = session.get(api_url, params=q, headers=UA, timeout=timeout)
    r.raise_for_status()
    try:
        data = r.json()
    except ValueError as e:
        raise MalformedResponse(f"non-JSON reply for {params}") from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"unexpected reply for {params}: {data!r}")
    if "error" in data:
        err = data["error"] or {}
        if err.get("code") == "missingtitle":
            raise PageNotFound(err.get("info") or "page does not exist")
        raise MalformedResponse(f"{err.get('code')}: {err.get('info')}")
    return data


def _camel(label: str) -> str:
    words = re.findall(r"[A-Za-z0-9]+", label)
    if not words:
        return ""
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def _infobox_info(html: str) -> Dict[str, Any]:
    """Rendered page HTML -> {"general": {...}} built from the first infobox."""
    soup = BeautifulSoup(html, "html.parser")
    general: Dict[str, Any] = {}
    box = soup.find("table", class_="infobox")
    if box is None:
        return {"general": general}

    for row in box.find_all("tr"):
        th, td = row.find("th"), row.find("td")
        if th is None or td is None:
            continue
        key = _camel(th.get_text(" ", strip=True))
        if key and key not in general:
            general[key] = td.get_text(" ", strip=True)

    # hCard microformat spans carry ISO dates, e.g. <span class="bday">1879-03-14</span>
    bday = box.find("span", class_="bday")
    if bday and bday.get_text(strip=True):
        general["birthDate"] = {"date": bday.get_text(strip=True)}
    dday = box.find("span", class_="dday")
    if dday and dday.get_text(strip=True):
        general["deathDate"] = {"date": dday.get_text(strip=True)}

    return {"general": general}


# ----------------------------- Page handle ------------------------------ #
class WikiPage:
    def __init__(self, client: "WikiClient", title: str, pageid: int, fullurl: str):
        self.client = client
        self.title = title
        self.pageid = pageid
        self.fullurl = fullurl

    def __repr__(self):
        return f"WikiPage({self.title!r})"

    def backlinks(self) -> List[str]:
        params = {
            "action": "query",
            "list": "backlinks",
            "bltitle": self.title,
            "bllimit": "max",
        }
        out = []
        for data in self.client.query_all(params):
            for link in data.get("query", {}).get("backlinks", []):
                out.append(link.get("title", ""))
        return out

    def references(self) -> List[str]:
        params = {
            "action": "query",
            "prop": "extlinks",
            "titles": self.title,
            "ellimit": "max",
        }
        out = []
        for data in self.client.query_all(params):
            for p in data.get("query", {}).get("pages", []):
                for link in p.get("extlinks", []):
                    out.append(link.get("url") or link.get("*") or "")
        return out

    def full_info(self) -> Dict[str, Any]:
        data = self.client.get(
            {"action": "parse", "page": self.title, "prop": "text", "redirects": "1"}
        )
        html = (data.get("parse") or {}).get("text")
        if isinstance(html, dict):  # formatversion=1 shape
            html = html.get("*")
        if not isinstance(html, str):
            raise MalformedResponse(f"no page text for {self.title!r}")
        return _infobox_info(html)


# ----------------------------- Client ----------------------------------- #
class WikiClient:
    def __init__(self, api_url: str = WIKI_API_URL, session=None, timeout=TIMEOUT):
        self.api_url = api_url
        # module-level requests.get opens a fresh session per call, safe across threads
        self.session = session or requests
        self.timeout = timeout

    def get(self, params: Dict[str, str]) -> Dict[str, Any]:
        return _get_json(self.session, self.api_url, params, timeout=self.timeout)

    def query_all(self, params: Dict[str, str]) -> Iterator[Dict[str, Any]]:
        """Yield every batch of a query, following `continue` tokens."""
        params = dict(params)
        while True:
            data = self.get(params)
            yield data
            cont: Optional[Dict[str, str]] = data.get("continue")
            if not cont:
                break
            params.update(cont)

    def page(self, title: str) -> WikiPage:
        data = self.get(
            {
                "action": "query",
                "titles": title,
                "prop": "info",
                "inprop": "url",
                "redirects": "1",
            }
        )
        pages = data.get("query", {}).get("pages") or []
        if not pages:
            raise MalformedResponse(f"no pages in reply for {title!r}")
        p = pages[0]
        if p.get("missing") or p.get("invalid") or "pageid" not in p:
            raise PageNotFound(f"no Wikipedia page for {title!r}")
        if not p.get("fullurl"):
            raise MalformedResponse(f"no fullurl for {title!r}")
        return WikiPage(self, p["title"], p["pageid"], p["fullurl"])
