# enrich_core.py
import argparse
import json
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

from legends_store import LegendError, load_results, load_worklist, save_results
from wiki_client import WIKI_API_URL, WikiClient

# ---------- config ----------
LEGENDS_RAW_PATH = os.getenv("LEGENDS_RAW_PATH", "scripts/legends_raw.json")
LEGENDS_PATH = os.getenv("LEGENDS_PATH", "assets/legends.json")


# ---------- pending set ----------
def _already_done(legend: Dict[str, Any], done: Dict[str, Any]) -> bool:
    # an enriched record is the raw record plus the enrichment fields
    return all(k in done and done[k] == v for k, v in legend.items())


def pending_legends(
    worklist: List[Dict[str, Any]], results: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    return [w for w in worklist if not any(_already_done(w, r) for r in results)]


def lookup_title(legend: Dict[str, Any]) -> str:
    return legend.get("alternate") or legend["name"]


# ---------- one legend ----------
def enrich_legend(legend: Dict[str, Any], client) -> Dict[str, Any]:
    """
    Resolve the legend's page, then fetch backlinks, references and infobox
    info side by side. Any failure propagates and nothing is merged.
    """
    page = client.page(lookup_title(legend))

    with ThreadPoolExecutor(max_workers=3) as ex:
        f_back = ex.submit(page.backlinks)
        f_refs = ex.submit(page.references)
        f_info = ex.submit(page.full_info)
        backlinks, references, info = f_back.result(), f_refs.result(), f_info.result()

    general = (info or {}).get("general") or {}
    birthday = (general.get("birthDate") or {}).get("date")
    deathday = (general.get("deathDate") or {}).get("date")

    out = dict(legend)
    out["url"] = page.fullurl
    out["backlinks"] = len(backlinks)
    out["references"] = len(references)
    if birthday:
        out["birthday"] = birthday
    if deathday:
        out["deathday"] = deathday
    return out


# ---------- main loop ----------
def run_enrichment(
    worklist_path: str = LEGENDS_RAW_PATH,
    results_path: str = LEGENDS_PATH,
    client=None,
) -> List[Dict[str, Any]]:
    """
    Enrich every worklist legend not yet in the result file, in worklist
    order, rewriting the result file after each one. Returns the new records.
    """
    worklist = load_worklist(worklist_path)
    results = load_results(results_path)
    todo = pending_legends(worklist, results)

    print(f"{len(todo)} legends pending; {len(results)} already enriched.")
    if not todo:
        print("Nothing to do.")
        return []

    client = client or WikiClient()
    enriched: List[Dict[str, Any]] = []
    for i, legend in enumerate(todo, 1):
        print(f"…{len(todo) - i + 1} remaining")
        record = enrich_legend(legend, client)
        results.append(record)
        save_results(results_path, results)
        enriched.append(record)
        print(f"[{i}/{len(todo)}] {json.dumps(record, ensure_ascii=False)}")

    return enriched


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(
        description="Fetch Wikipedia metadata for every legend not yet enriched."
    )
    p.add_argument("--worklist", default=LEGENDS_RAW_PATH, help="raw legends JSON array")
    p.add_argument("--results", default=LEGENDS_PATH, help="enriched legends JSON array")
    p.add_argument("--api-url", default=WIKI_API_URL, help="MediaWiki api.php endpoint")
    args = p.parse_args(argv)

    try:
        new = run_enrichment(
            args.worklist, args.results, client=WikiClient(api_url=args.api_url)
        )
    except (LegendError, requests.RequestException, OSError) as e:
        print(f"[error] {type(e).__name__}: {e}", file=sys.stderr)
        print(f"[error] progress so far is saved in {args.results}; re-run to resume", file=sys.stderr)
        return 1

    print(f"Saved {len(new)} new legends to {args.results}")
    return 0
