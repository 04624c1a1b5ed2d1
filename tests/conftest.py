"""Shared fixtures: stub lookup service and on-disk legend files."""

import json

import pytest


class StubPage:
    def __init__(self, title, url, backlinks=0, references=0, info=None, fail=None):
        self.title = title
        self.fullurl = url
        self._backlinks = ["Link %d" % i for i in range(backlinks)]
        self._references = ["http://ref/%d" % i for i in range(references)]
        self._info = info if info is not None else {"general": {}}
        self._fail = fail or ()

    def _maybe_fail(self, what):
        if what in self._fail:
            raise RuntimeError(f"{what} failed for {self.title}")

    def backlinks(self):
        self._maybe_fail("backlinks")
        return self._backlinks

    def references(self):
        self._maybe_fail("references")
        return self._references

    def full_info(self):
        self._maybe_fail("full_info")
        return self._info


class StubClient:
    """Lookup service double; records every title it is asked to resolve."""

    def __init__(self, pages=None, missing=()):
        self.pages = pages or {}
        self.missing = set(missing)
        self.requested = []

    def page(self, title):
        self.requested.append(title)
        if title in self.missing:
            from wiki_client import PageNotFound

            raise PageNotFound(f"no Wikipedia page for {title!r}")
        if title in self.pages:
            return self.pages[title]
        return StubPage(
            title,
            f"https://en.wikipedia.org/wiki/{title}",
            backlinks=2,
            references=5,
            info={"general": {"birthDate": {"date": "1900-01-01"}}},
        )


@pytest.fixture
def stub_client():
    return StubClient()


@pytest.fixture
def legend_files(tmp_path):
    """Returns a helper writing worklist/results files and their paths."""

    def write(worklist, results=None):
        raw = tmp_path / "scripts" / "legends_raw.json"
        out = tmp_path / "assets" / "legends.json"
        raw.parent.mkdir(parents=True, exist_ok=True)
        raw.write_text(json.dumps(worklist), encoding="utf-8")
        if results is not None:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(json.dumps(results), encoding="utf-8")
        return str(raw), str(out)

    return write
